"""Authentication routes: register and login with local credentials."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from publish.api.deps import get_db_session, to_http_exception
from publish.api.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from publish.api.schemas.users import UserResponse
from publish.domain import PublishError
from publish.domain.services import IdentityStore
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/local/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new account",
)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """Create an account with the default role and return a bearer token."""
    store = IdentityStore(session)
    try:
        user, token = await store.register(
            username=payload.username,
            email=payload.email,
            password=payload.password,
        )
    except PublishError as exc:
        raise to_http_exception(exc) from exc

    return AuthResponse(jwt=token, user=UserResponse.from_model(user, include_role=True))


@router.post("/local", response_model=AuthResponse, summary="Login")
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """Exchange a username/email and password for a bearer token."""
    store = IdentityStore(session)
    try:
        user, token = await store.login(identifier=payload.identifier, password=payload.password)
    except PublishError as exc:
        raise to_http_exception(exc) from exc

    return AuthResponse(jwt=token, user=UserResponse.from_model(user, include_role=True))
