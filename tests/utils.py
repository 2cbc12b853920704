from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from publish.core.auth import create_access_token, hash_password
from publish.domain import Identity
from publish.infrastructure.db.models import PostModel, RoleModel, TagModel, UserModel, utcnow
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_PASSWORD = "correct-horse-battery"


@lru_cache
def _default_hash() -> str:
    # Hash the shared test password once per run.
    return hash_password(DEFAULT_PASSWORD)


async def create_user(
    session: AsyncSession,
    username: str,
    *,
    role: str = "author",
    email: str | None = None,
    blocked: bool = False,
) -> UserModel:
    role_model = await session.scalar(select(RoleModel).where(RoleModel.name == role))
    assert role_model is not None, f"role {role} not seeded"
    user = UserModel(
        username=username,
        email=email or f"{username}@example.com",
        hashed_password=_default_hash(),
        role=role_model,
        blocked=blocked,
    )
    session.add(user)
    await session.commit()
    return user


async def create_tag(session: AsyncSession, name: str) -> TagModel:
    tag = TagModel(name=name)
    session.add(tag)
    await session.commit()
    return tag


async def create_post(
    session: AsyncSession,
    author: UserModel,
    slug: str,
    *,
    title: str | None = None,
    tags: list[TagModel] | None = None,
    published: bool = False,
) -> PostModel:
    post = PostModel(
        title=title or slug.replace("-", " ").title(),
        slug=slug,
        body="<p>Body</p>",
        author=author,
        tags=tags or [],
        published_at=utcnow() if published else None,
    )
    session.add(post)
    await session.commit()
    return post


def identity_for(user: UserModel) -> Identity:
    return Identity(user_id=user.id, username=user.username, role=user.role.name)


def auth_headers(user: UserModel, *, expires_delta: timedelta | None = None) -> dict[str, str]:
    token = create_access_token(user.id, expires_delta=expires_delta)
    return {"Authorization": f"Bearer {token}"}
