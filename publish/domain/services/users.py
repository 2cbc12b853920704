from __future__ import annotations

from typing import Any

import structlog
from publish.core.auth import hash_password
from publish.domain.errors import ConflictError, NotFoundError
from publish.domain.models import Identity
from publish.domain.policy import PolicyEngine, default_policy
from publish.infrastructure.db.models import PostModel, UserModel
from publish.infrastructure.repositories import UnitOfWork
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Only admins may change these on any account, their own included.
MANAGED_FIELDS = ("role", "blocked", "confirmed")


class UserService:
    """Admin-facing account management."""

    def __init__(self, session: AsyncSession, policy: PolicyEngine = default_policy) -> None:
        self.uow = UnitOfWork(session)
        self.policy = policy

    async def list_users(
        self,
        identity: Identity,
        *,
        email: str | None = None,
        username: str | None = None,
    ) -> list[UserModel]:
        """List accounts.

        The unfiltered listing is admin-only; any identity may look up by
        email (case-insensitive) or exact username.
        """
        criteria = []
        if email is not None:
            criteria.append(func.lower(UserModel.email) == email.lower())
        if username is not None:
            criteria.append(UserModel.username == username)
        if not criteria:
            self.policy.authorize(identity, "user.list")
        return await self.uow.users.list(*criteria, order_by=[UserModel.id])

    async def user_exists_by_email(self, email: str) -> bool:
        return await self.uow.users.find_by_email(email) is not None

    async def get_user(self, user_id: int, identity: Identity) -> UserModel:
        user = await self.uow.users.get(user_id)
        self.policy.authorize(identity, "user.read", user)
        return user

    async def update_user(
        self, user_id: int, patch: dict[str, Any], identity: Identity
    ) -> UserModel:
        """Apply a partial update to an account (self or admin)."""
        user = await self.uow.users.get(user_id)
        self.policy.authorize(identity, "user.update", user)
        if any(patch.get(name) is not None for name in MANAGED_FIELDS):
            self.policy.authorize(identity, "user.manage", user)

        changes: dict[str, Any] = {}
        username = patch.get("username")
        if username is not None and username != user.username:
            if await self.uow.users.find_by_username(username) is not None:
                raise ConflictError("Username already taken")
            changes["username"] = username

        email = patch.get("email")
        if email is not None and email.lower() != user.email:
            if await self.uow.users.find_by_email(email) is not None:
                raise ConflictError("Email already taken")
            changes["email"] = email.lower()

        if patch.get("password"):
            changes["hashed_password"] = hash_password(patch["password"])

        if patch.get("role") is not None:
            role = await self.uow.roles.find_by_name(patch["role"])
            if role is None:
                raise NotFoundError(f"Role {patch['role']} not found")
            changes["role"] = role

        for flag in ("blocked", "confirmed"):
            if patch.get(flag) is not None:
                changes[flag] = patch[flag]

        if changes:
            async with self.uow:
                await self.uow.users.update(user, **changes)

        await logger.ainfo(
            "user_updated",
            target_user_id=user.id,
            user_id=identity.user_id,
            updated_fields=sorted(changes),
        )
        return user

    async def delete_user(self, user_id: int, identity: Identity) -> UserModel:
        """Delete an account (admin only); refused while the user authors posts."""
        self.policy.authorize(identity, "user.delete")
        user = await self.uow.users.get(user_id)

        authored = await self.uow.posts.count(PostModel.author_id == user.id)
        if authored:
            raise ConflictError(f"User {user_id} still authors {authored} post(s)")

        async with self.uow:
            await self.uow.users.delete(user)

        await logger.ainfo("user_deleted", target_user_id=user_id, user_id=identity.user_id)
        return user
