from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import structlog
from publish.domain.errors import ConflictError, NotFoundError
from publish.domain.models import Identity, PostFilter, PostSort, PostStatus, SortDirection
from publish.domain.policy import PolicyEngine, default_policy
from publish.domain.reference_data import ANY
from publish.infrastructure.db.models import PostModel, TagModel, UserModel, utcnow
from publish.infrastructure.repositories import UnitOfWork
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

SORT_COLUMNS = {
    "title": PostModel.title,
    "slug": PostModel.slug,
    "createdAt": PostModel.created_at,
    "updatedAt": PostModel.updated_at,
    "publishedAt": PostModel.published_at,
}

# Fields a patch may touch, keyed by their attribute name on PostModel.
PATCHABLE_FIELDS = ("title", "slug", "body", "published_at", "tags", "author_id")


class PostService:
    """List, read, create, update and delete posts on behalf of an identity."""

    def __init__(self, session: AsyncSession, policy: PolicyEngine = default_policy) -> None:
        self.uow = UnitOfWork(session)
        self.policy = policy

    async def list_posts(
        self,
        identity: Identity,
        post_filter: PostFilter | None = None,
        sort: PostSort | None = None,
    ) -> list[PostModel]:
        self.policy.authorize(identity, "post.read")
        post_filter = post_filter or PostFilter()
        sort = sort or PostSort()

        criteria = []
        if post_filter.author_id is not None:
            criteria.append(PostModel.author_id == post_filter.author_id)
        if post_filter.tag:
            criteria.append(PostModel.tags.any(func.lower(TagModel.name) == post_filter.tag.lower()))
        if post_filter.status is PostStatus.DRAFT:
            criteria.append(PostModel.published_at.is_(None))
        elif post_filter.status is PostStatus.PUBLISHED:
            criteria.append(PostModel.published_at.is_not(None))

        if not self._sees_all_drafts(identity):
            criteria.append(
                or_(PostModel.published_at.is_not(None), PostModel.author_id == identity.user_id)
            )

        column = SORT_COLUMNS[sort.field]
        if sort.direction is SortDirection.DESC:
            order_by = [column.desc(), PostModel.id.desc()]
        else:
            order_by = [column.asc(), PostModel.id.asc()]

        return await self.uow.posts.list(*criteria, order_by=order_by)

    async def get_post(self, identifier: int | str, identity: Identity) -> PostModel:
        """Fetch by numeric id or by slug.

        Drafts the caller may not read are reported as missing.
        """
        self.policy.authorize(identity, "post.read")
        key = str(identifier)

        post = None
        if key.isdigit():
            post = await self.uow.posts.find_one(PostModel.id == int(key), key=key)
        if post is None:
            post = await self.uow.posts.find_by_slug(key)

        if post is None or not self._can_read(identity, post):
            raise NotFoundError(f"Post {key} not found")
        return post

    async def create_post(
        self,
        identity: Identity,
        *,
        title: str,
        slug: str,
        body: str = "",
        tag_ids: Sequence[int] = (),
        author_id: int | None = None,
        published_at: datetime | None = None,
        idempotency_key: str | None = None,
    ) -> tuple[PostModel, bool]:
        """Create a post authored by the caller unless an admin names another author.

        Returns the post and whether it was newly created; a repeated
        idempotency key returns the earlier post untouched.
        """
        self.policy.authorize(identity, "post.create")
        author = await self._resolve_author(identity, author_id)

        if idempotency_key:
            existing = await self.uow.posts.find_by_idempotency_key(author.id, idempotency_key)
            if existing is not None:
                await logger.ainfo(
                    "post_create_replayed", post_id=existing.id, idempotency_key=idempotency_key
                )
                return existing, False

        await self._ensure_slug_free(slug)
        tags = await self._resolve_tags(tag_ids)

        post = PostModel(
            title=title,
            slug=slug,
            body=body,
            author=author,
            tags=tags,
            published_at=published_at,
            idempotency_key=idempotency_key,
        )
        async with self.uow:
            await self.uow.posts.create(post)

        await logger.ainfo(
            "post_created",
            post_id=post.id,
            slug=post.slug,
            author_id=author.id,
            user_id=identity.user_id,
            published=post.is_published,
        )
        return post, True

    async def update_post(
        self, post_id: int, patch: dict[str, Any], identity: Identity
    ) -> PostModel:
        """Apply a partial update.

        ``published_at`` may move from null to a timestamp (publish) or back
        (unpublish); ``updated_at`` is refreshed on every call.
        """
        post = await self.uow.posts.get(post_id)
        self.policy.authorize(identity, "post.update", post)

        changes: dict[str, Any] = {}
        for name in PATCHABLE_FIELDS:
            if name in patch:
                changes[name] = patch[name]

        if "slug" in changes and changes["slug"] != post.slug:
            await self._ensure_slug_free(changes["slug"])
        else:
            changes.pop("slug", None)

        author_id = changes.pop("author_id", None)
        if author_id is not None and author_id != post.author_id:
            self.policy.authorize(identity, "post.assign_author", post)
            changes["author"] = await self.uow.users.get(author_id)

        if "tags" in changes:
            changes["tags"] = await self._resolve_tags(changes["tags"] or [])

        # Re-publishing keeps the original publish time.
        if post.is_published and changes.get("published_at") is not None:
            changes.pop("published_at")

        was_published = post.is_published
        changes["updated_at"] = utcnow()
        async with self.uow:
            await self.uow.posts.update(post, **changes)

        transition = None
        if was_published != post.is_published:
            transition = "published" if post.is_published else "unpublished"
        await logger.ainfo(
            "post_updated",
            post_id=post.id,
            user_id=identity.user_id,
            updated_fields=sorted(k for k in changes if k != "updated_at"),
            transition=transition,
        )
        return post

    async def delete_post(self, post_id: int, identity: Identity) -> PostModel:
        post = await self.uow.posts.get(post_id)
        self.policy.authorize(identity, "post.delete", post)

        async with self.uow:
            await self.uow.posts.delete(post)

        await logger.ainfo("post_deleted", post_id=post_id, user_id=identity.user_id)
        return post

    def _sees_all_drafts(self, identity: Identity) -> bool:
        return self.policy.scope(identity, "post.read_draft") == ANY

    def _can_read(self, identity: Identity, post: PostModel) -> bool:
        return post.is_published or self.policy.is_allowed(identity, "post.read_draft", post)

    async def _resolve_author(self, identity: Identity, author_id: int | None) -> UserModel:
        if author_id is None or author_id == identity.user_id:
            return await self.uow.users.get(identity.user_id)
        self.policy.authorize(identity, "post.assign_author")
        return await self.uow.users.get(author_id)

    async def _ensure_slug_free(self, slug: str) -> None:
        if await self.uow.posts.find_by_slug(slug) is not None:
            raise ConflictError(f"Post with slug '{slug}' already exists")

    async def _resolve_tags(self, tag_ids: Sequence[int]) -> list[TagModel]:
        wanted = list(dict.fromkeys(tag_ids))
        if not wanted:
            return []
        tags = await self.uow.tags.list(TagModel.id.in_(wanted))
        missing = sorted(set(wanted) - {tag.id for tag in tags})
        if missing:
            raise NotFoundError(f"Tag {', '.join(str(tag_id) for tag_id in missing)} not found")
        return tags
