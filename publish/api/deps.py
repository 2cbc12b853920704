from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from publish.domain import (
    ConflictError,
    ForbiddenError,
    Identity,
    NotFoundError,
    PublishError,
    StoreUnavailableError,
    UnauthenticatedError,
)
from publish.domain.services import SessionGateway
from publish.infrastructure.db.session import get_session
from sqlalchemy.ext.asyncio import AsyncSession

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Provide an async SQLAlchemy session for API handlers."""
    async for session in get_session():
        yield session


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
    session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> Identity:
    """Resolve the authenticated caller; rejects the request before any handler runs."""
    token = credentials.credentials if credentials is not None else None
    try:
        return await SessionGateway(session).authenticate(token)
    except PublishError as exc:
        raise to_http_exception(exc) from exc


def to_http_exception(exc: PublishError) -> HTTPException:
    """Map a domain failure onto the matching HTTP error."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, UnauthenticatedError):
        return _unauthorized(str(exc))
    if isinstance(exc, ForbiddenError):
        return _forbidden(str(exc))
    if isinstance(exc, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
