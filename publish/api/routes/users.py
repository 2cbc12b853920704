from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from publish.api.deps import get_db_session, get_identity, to_http_exception
from publish.api.schemas.users import RoleResponse, RolesResponse, UserResponse, UserUpdate
from publish.domain import Identity, PublishError
from publish.domain.services import IdentityStore, UserService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["Users"])


def _wants_role(populate: str | None) -> bool:
    if not populate:
        return False
    return populate == "*" or "role" in populate.split(",")


@router.get("/users/me", response_model=UserResponse, response_model_exclude_none=True)
async def get_me(
    populate: str | None = Query(None),
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> UserResponse:
    """Return the caller's own account."""
    service = UserService(session)
    try:
        user = await service.get_user(identity.user_id, identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.from_model(user, include_role=_wants_role(populate))


@router.put("/users/me", response_model=UserResponse, response_model_exclude_none=True)
async def update_me(
    payload: UserUpdate,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> UserResponse:
    service = UserService(session)
    try:
        user = await service.update_user(
            identity.user_id, payload.model_dump(exclude_unset=True), identity
        )
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.from_model(user)


@router.get("/users", response_model=list[UserResponse], response_model_exclude_none=True)
async def list_users(
    populate: str | None = Query(None),
    email: str | None = Query(None, alias="filters[email][$eqi]"),
    username: str | None = Query(None, alias="filters[username][$eq]"),
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> list[UserResponse]:
    """List accounts (admin), or look accounts up by email/username (any caller)."""
    service = UserService(session)
    try:
        users = await service.list_users(identity, email=email, username=username)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    include_role = _wants_role(populate)
    return [UserResponse.from_model(user, include_role=include_role) for user in users]


@router.get("/users/{user_id}", response_model=UserResponse, response_model_exclude_none=True)
async def get_user(
    user_id: int,
    populate: str | None = Query(None),
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> UserResponse:
    service = UserService(session)
    try:
        user = await service.get_user(user_id, identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.from_model(user, include_role=_wants_role(populate))


@router.put("/users/{user_id}", response_model=UserResponse, response_model_exclude_none=True)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> UserResponse:
    """Update an account: the caller's own, or any account for admins."""
    service = UserService(session)
    try:
        user = await service.update_user(user_id, payload.model_dump(exclude_unset=True), identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.from_model(user, include_role=True)


@router.delete("/users/{user_id}", response_model=UserResponse, response_model_exclude_none=True)
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> UserResponse:
    """Delete an account (admin only). Returns the deleted account."""
    service = UserService(session)
    try:
        user = await service.delete_user(user_id, identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.from_model(user)


@router.get("/users-permissions/roles", response_model=RolesResponse)
async def list_roles(
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> RolesResponse:
    store = IdentityStore(session)
    try:
        roles = await store.list_roles(identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return RolesResponse(roles=[RoleResponse.from_model(role) for role in roles])
