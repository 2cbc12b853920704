from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator
from publish.api.schemas.common import CamelModel, Meta
from publish.api.schemas.tags import TagResponse
from publish.domain.models import PostStatus
from publish.infrastructure.db.models import PostModel

SLUG_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_.~-]*$"


def _first_author(value: Any) -> Any:
    # The editor sends ``author`` as a one-element list of user ids.
    if isinstance(value, list):
        return value[0] if value else None
    return value


class AuthorSummary(CamelModel):
    id: int
    username: str


class PostResponse(CamelModel):
    id: int
    title: str
    slug: str
    body: str
    status: PostStatus
    author: AuthorSummary
    tags: list[TagResponse]
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, post: PostModel) -> PostResponse:
        return cls(
            id=post.id,
            title=post.title,
            slug=post.slug,
            body=post.body,
            status=PostStatus.PUBLISHED if post.is_published else PostStatus.DRAFT,
            author=AuthorSummary(id=post.author.id, username=post.author.username),
            tags=[TagResponse.from_model(tag) for tag in post.tags],
            published_at=post.published_at,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN)
    body: str = ""
    tags: list[int] = Field(default_factory=list, description="Tag ids")
    author: int | None = Field(None, description="Author user id; defaults to the caller")
    published_at: datetime | None = None

    @field_validator("author", mode="before")
    @classmethod
    def normalize_author(cls, value: Any) -> Any:
        return _first_author(value)


class PostUpdate(CamelModel):
    """Partial update; only fields present in the request are applied."""

    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    body: str | None = None
    tags: list[int] | None = None
    author: int | None = None
    published_at: datetime | None = None

    @field_validator("author", mode="before")
    @classmethod
    def normalize_author(cls, value: Any) -> Any:
        return _first_author(value)

    def to_patch(self) -> dict[str, Any]:
        """Map provided fields to model attribute names, keeping explicit nulls
        only where they are meaningful (``publishedAt: null`` unpublishes)."""
        provided = self.model_dump(exclude_unset=True)
        patch: dict[str, Any] = {}
        for name, value in provided.items():
            if name == "published_at":
                patch["published_at"] = value
            elif value is None:
                continue
            elif name == "author":
                patch["author_id"] = value
            else:
                patch[name] = value
        return patch


class PostCreateRequest(CamelModel):
    data: PostCreate


class PostUpdateRequest(CamelModel):
    data: PostUpdate


class PostEnvelope(CamelModel):
    data: PostResponse
    meta: Meta = Field(default_factory=Meta)


class PostListEnvelope(CamelModel):
    data: list[PostResponse]
    meta: Meta = Field(default_factory=Meta)
