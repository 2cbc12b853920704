from __future__ import annotations

from typing import Any

import structlog
from publish.core.auth import TokenError, decode_access_token
from publish.domain.errors import UnauthenticatedError
from publish.domain.models import Identity
from publish.domain.policy import PolicyEngine, default_policy
from publish.infrastructure.db.models import UserModel
from publish.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class SessionGateway:
    """Turns a bearer token into an ``Identity`` and checks actions against policy."""

    def __init__(self, session: AsyncSession, policy: PolicyEngine = default_policy) -> None:
        self.uow = UnitOfWork(session)
        self.policy = policy

    async def authenticate(self, token: str | None) -> Identity:
        if not token:
            raise UnauthenticatedError("Missing bearer token")

        try:
            user_id = decode_access_token(token)
        except TokenError as exc:
            await logger.awarning("token_rejected", reason=str(exc))
            raise UnauthenticatedError(str(exc)) from exc

        user = await self.uow.users.find_one(UserModel.id == user_id, key=user_id)
        if user is None:
            raise UnauthenticatedError("Token subject no longer exists")
        if user.blocked:
            raise UnauthenticatedError("User is blocked")

        return Identity(user_id=user.id, username=user.username, role=user.role.name)

    def authorize(self, identity: Identity, action: str, resource: Any = None) -> None:
        self.policy.authorize(identity, action, resource)
