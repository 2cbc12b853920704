from .base import Repository, store_guard
from .unit_of_work import (
    PostRepository,
    RoleRepository,
    TagRepository,
    UnitOfWork,
    UserRepository,
)

__all__ = [
    "PostRepository",
    "Repository",
    "RoleRepository",
    "TagRepository",
    "UnitOfWork",
    "UserRepository",
    "store_guard",
]
