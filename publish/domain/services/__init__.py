"""Domain services."""

from publish.domain.services.gateway import SessionGateway
from publish.domain.services.identity import IdentityStore, seed_roles
from publish.domain.services.posts import PostService
from publish.domain.services.tags import TagService
from publish.domain.services.users import UserService

__all__ = [
    "IdentityStore",
    "PostService",
    "SessionGateway",
    "TagService",
    "UserService",
    "seed_roles",
]
