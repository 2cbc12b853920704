from __future__ import annotations

import structlog
from publish.infrastructure.db.models import PostModel, RoleModel, TagModel, UserModel, post_tags
from publish.infrastructure.repositories.base import Repository, store_guard
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class RoleRepository(Repository[RoleModel]):
    model = RoleModel
    label = "Role"

    async def find_by_name(self, name: str) -> RoleModel | None:
        return await self.find_one(RoleModel.name == name, key=name)


class UserRepository(Repository[UserModel]):
    model = UserModel
    label = "User"

    async def find_by_username(self, username: str) -> UserModel | None:
        return await self.find_one(UserModel.username == username, key=username)

    async def find_by_email(self, email: str) -> UserModel | None:
        return await self.find_one(func.lower(UserModel.email) == email.lower(), key=email)


class TagRepository(Repository[TagModel]):
    model = TagModel
    label = "Tag"

    async def find_by_name(self, name: str) -> TagModel | None:
        return await self.find_one(func.lower(TagModel.name) == name.lower(), key=name)

    async def detach_from_posts(self, tag_id: int) -> None:
        with store_guard("detach", self.label, tag_id):
            await self.session.execute(delete(post_tags).where(post_tags.c.tag_id == tag_id))


class PostRepository(Repository[PostModel]):
    model = PostModel
    label = "Post"

    async def find_by_slug(self, slug: str) -> PostModel | None:
        return await self.find_one(PostModel.slug == slug, key=slug)

    async def find_by_idempotency_key(self, author_id: int, key: str) -> PostModel | None:
        return await self.find_one(
            PostModel.author_id == author_id,
            PostModel.idempotency_key == key,
            key=key,
        )


class UnitOfWork:
    """Repositories sharing one session, committed or rolled back together."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.roles = RoleRepository(session)
        self.users = UserRepository(session)
        self.tags = TagRepository(session)
        self.posts = PostRepository(session)

    async def __aenter__(self) -> UnitOfWork:
        logger.debug("uow_enter")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            await self.commit()
        logger.debug("uow_exit", exc_type=str(exc_type) if exc_type else None)

    async def commit(self) -> None:
        try:
            with store_guard("commit", "transaction", "request"):
                await self.session.commit()
        except Exception:
            await self.rollback()
            raise

    async def rollback(self) -> None:
        await self.session.rollback()
        logger.debug("uow_rollback")
