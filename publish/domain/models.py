from __future__ import annotations

import enum
from dataclasses import dataclass


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(slots=True, frozen=True)
class Identity:
    """An authenticated caller, resolved from a bearer token."""

    user_id: int
    username: str
    role: str


@dataclass(slots=True, frozen=True)
class PostFilter:
    author_id: int | None = None
    tag: str | None = None
    status: PostStatus | None = None


@dataclass(slots=True, frozen=True)
class PostSort:
    """Sort key for post listings, parsed from ``field:direction``."""

    field: str = "updatedAt"
    direction: SortDirection = SortDirection.DESC

    FIELDS = ("title", "slug", "createdAt", "updatedAt", "publishedAt")

    @classmethod
    def parse(cls, value: str | None) -> PostSort:
        if not value:
            return cls()
        field, _, direction = value.partition(":")
        if field not in cls.FIELDS:
            raise ValueError(f"Unsupported sort field: {field}")
        try:
            parsed = SortDirection(direction.lower()) if direction else SortDirection.ASC
        except ValueError as exc:
            raise ValueError(f"Unsupported sort direction: {direction}") from exc
        return cls(field=field, direction=parsed)
