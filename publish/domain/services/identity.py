"""Identity store: users, roles, credentials and token issuance."""

from __future__ import annotations

import structlog
from publish.core.auth import create_access_token, hash_password, verify_password
from publish.core.config import get_settings
from publish.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
)
from publish.domain.models import Identity
from publish.domain.policy import PolicyEngine, default_policy
from publish.domain.reference_data import ROLE_DEFINITIONS
from publish.infrastructure.db.models import RoleModel, UserModel
from publish.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def seed_roles(session: AsyncSession) -> list[RoleModel]:
    """Insert any missing reference roles and refresh permissions of existing ones."""
    uow = UnitOfWork(session)
    roles: list[RoleModel] = []
    async with uow:
        for definition in ROLE_DEFINITIONS:
            role = await uow.roles.find_by_name(definition["name"])
            if role is None:
                role = await uow.roles.create(RoleModel(**definition))
                logger.info("role_seeded", role=role.name)
            else:
                await uow.roles.update(
                    role,
                    description=definition["description"],
                    permissions=dict(definition["permissions"]),
                )
            roles.append(role)
    return roles


class IdentityStore:
    """Lookups and credential flows over users and roles."""

    def __init__(self, session: AsyncSession, policy: PolicyEngine = default_policy) -> None:
        self.uow = UnitOfWork(session)
        self.policy = policy

    async def find_user_by_username(self, username: str) -> UserModel:
        user = await self.uow.users.find_by_username(username)
        if user is None:
            raise NotFoundError(f"User {username} not found")
        return user

    async def find_role_by_name(self, name: str) -> RoleModel:
        role = await self.uow.roles.find_by_name(name)
        if role is None:
            raise NotFoundError(f"Role {name} not found")
        return role

    async def list_roles(self, identity: Identity) -> list[RoleModel]:
        self.policy.authorize(identity, "role.read")
        return await self.uow.roles.list(order_by=[RoleModel.id])

    def issue_token(self, user_id: int) -> str:
        return create_access_token(user_id)

    async def register(
        self,
        *,
        username: str,
        email: str,
        password: str,
    ) -> tuple[UserModel, str]:
        """Create an account with the default role and return it with a fresh token."""
        await logger.ainfo("register_attempt", username=username)

        if await self.uow.users.find_by_username(username) is not None:
            raise ConflictError("Username already taken")
        if await self.uow.users.find_by_email(email) is not None:
            raise ConflictError("Email already taken")

        role = await self.find_role_by_name(get_settings().default_role)
        user = UserModel(
            username=username,
            email=email.lower(),
            hashed_password=hash_password(password),
            role=role,
        )
        async with self.uow:
            await self.uow.users.create(user)

        await logger.ainfo("register_success", user_id=user.id, username=username)
        return user, self.issue_token(user.id)

    async def login(self, *, identifier: str, password: str) -> tuple[UserModel, str]:
        """Authenticate by username or email."""
        await logger.ainfo("login_attempt", identifier=identifier)

        user = await self.uow.users.find_by_username(identifier)
        if user is None:
            user = await self.uow.users.find_by_email(identifier)

        if user is None or not verify_password(password, user.hashed_password):
            await logger.awarning("login_invalid_credentials", identifier=identifier)
            raise UnauthenticatedError("Invalid identifier or password")

        if user.blocked:
            await logger.awarning("login_blocked_user", user_id=user.id)
            raise ForbiddenError("Your account has been blocked by an administrator")

        await logger.ainfo("login_success", user_id=user.id)
        return user, self.issue_token(user.id)
