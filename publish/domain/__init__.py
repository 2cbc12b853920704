from publish.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PublishError,
    StoreUnavailableError,
    UnauthenticatedError,
)
from publish.domain.models import Identity, PostFilter, PostSort, PostStatus

__all__ = [
    "ConflictError",
    "ForbiddenError",
    "Identity",
    "NotFoundError",
    "PostFilter",
    "PostSort",
    "PostStatus",
    "PublishError",
    "StoreUnavailableError",
    "UnauthenticatedError",
]
