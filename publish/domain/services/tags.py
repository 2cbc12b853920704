from __future__ import annotations

import structlog
from publish.domain.errors import ConflictError
from publish.domain.models import Identity
from publish.domain.policy import PolicyEngine, default_policy
from publish.infrastructure.db.models import TagModel
from publish.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class TagService:
    def __init__(self, session: AsyncSession, policy: PolicyEngine = default_policy) -> None:
        self.uow = UnitOfWork(session)
        self.policy = policy

    async def list_tags(self, identity: Identity) -> list[TagModel]:
        self.policy.authorize(identity, "tag.read")
        return await self.uow.tags.list(order_by=[TagModel.name])

    async def create_tag(self, name: str, identity: Identity) -> tuple[TagModel, bool]:
        """Return the tag named ``name`` (case-insensitive), creating it if absent."""
        self.policy.authorize(identity, "tag.create")
        name = name.strip()

        existing = await self.uow.tags.find_by_name(name)
        if existing is not None:
            return existing, False

        tag = TagModel(name=name)
        try:
            async with self.uow:
                await self.uow.tags.create(tag)
        except ConflictError:
            # Lost a race with a concurrent insert of the same name.
            existing = await self.uow.tags.find_by_name(name)
            if existing is None:
                raise
            return existing, False

        await logger.ainfo("tag_created", tag_id=tag.id, name=tag.name, user_id=identity.user_id)
        return tag, True

    async def delete_tag(self, tag_id: int, identity: Identity) -> TagModel:
        """Delete a tag, detaching it from every post that carries it."""
        self.policy.authorize(identity, "tag.delete")
        tag = await self.uow.tags.get(tag_id)

        async with self.uow:
            await self.uow.tags.detach_from_posts(tag.id)
            await self.uow.tags.delete(tag)

        await logger.ainfo("tag_deleted", tag_id=tag_id, user_id=identity.user_id)
        return tag
