from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from publish.api.deps import get_db_session
from publish.api.main import app
from publish.domain import Identity
from publish.domain.services import seed_roles
from publish.infrastructure.db.base import Base
from publish.infrastructure.db.models import UserModel
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tests.utils import auth_headers, create_user, identity_for


@pytest.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Session with reference roles seeded, for tests that need direct DB access."""
    async with session_factory() as session:
        await seed_roles(session)
        yield session


@pytest.fixture()
async def async_client(
    db: AsyncSession, session_factory: async_sessionmaker[AsyncSession]
) -> AsyncIterator[AsyncClient]:
    """HTTP client bound to the app, with one fresh session per request."""

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture()
async def admin(db: AsyncSession) -> UserModel:
    return await create_user(db, "editor", role="admin")


@pytest.fixture()
async def author(db: AsyncSession) -> UserModel:
    return await create_user(db, "writer")


@pytest.fixture()
async def other_author(db: AsyncSession) -> UserModel:
    return await create_user(db, "columnist")


@pytest.fixture()
def admin_identity(admin: UserModel) -> Identity:
    return identity_for(admin)


@pytest.fixture()
def author_identity(author: UserModel) -> Identity:
    return identity_for(author)


@pytest.fixture()
def other_identity(other_author: UserModel) -> Identity:
    return identity_for(other_author)


@pytest.fixture()
def admin_headers(admin: UserModel) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def author_headers(author: UserModel) -> dict[str, str]:
    return auth_headers(author)


@pytest.fixture()
def other_headers(other_author: UserModel) -> dict[str, str]:
    return auth_headers(other_author)
