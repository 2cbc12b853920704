"""Typed failures shared by the services and the API layer."""

from __future__ import annotations


class PublishError(Exception):
    """Base exception for domain failures."""


class NotFoundError(PublishError):
    """Raised when a requested entity does not exist."""


class ConflictError(PublishError):
    """Raised on a uniqueness or referential-integrity violation."""


class UnauthenticatedError(PublishError):
    """Raised when a token is missing, invalid, or expired."""


class ForbiddenError(PublishError):
    """Raised when an authenticated identity may not perform an action."""


class StoreUnavailableError(PublishError):
    """Raised when the underlying store fails.

    The message names the operation only; the original error is chained and logged.
    """
