from __future__ import annotations

import pytest
from publish.core.auth import verify_password
from publish.domain import ConflictError, ForbiddenError, Identity, NotFoundError
from publish.domain.services import UserService
from publish.infrastructure.db.models import UserModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tests.utils import create_post


async def test_list_users_unfiltered_is_admin_only(
    db: AsyncSession,
    admin: UserModel,
    author: UserModel,
    admin_identity: Identity,
    author_identity: Identity,
) -> None:
    service = UserService(db)

    users = await service.list_users(admin_identity)
    assert [user.username for user in users] == ["editor", "writer"]

    with pytest.raises(ForbiddenError):
        await service.list_users(author_identity)


async def test_list_users_by_email_is_case_insensitive(
    db: AsyncSession, other_author: UserModel, author_identity: Identity
) -> None:
    service = UserService(db)

    users = await service.list_users(author_identity, email="COLUMNIST@example.com")

    assert [user.id for user in users] == [other_author.id]


async def test_list_users_by_username(
    db: AsyncSession, other_author: UserModel, author_identity: Identity
) -> None:
    service = UserService(db)

    assert [u.id for u in await service.list_users(author_identity, username="columnist")] == [
        other_author.id
    ]
    assert await service.list_users(author_identity, username="Columnist") == []


async def test_user_exists_by_email(db: AsyncSession, author: UserModel) -> None:
    service = UserService(db)

    assert await service.user_exists_by_email("Writer@Example.com") is True
    assert await service.user_exists_by_email("nobody@example.com") is False


async def test_get_user_self_or_admin(
    db: AsyncSession,
    author: UserModel,
    other_author: UserModel,
    author_identity: Identity,
    admin_identity: Identity,
) -> None:
    service = UserService(db)

    assert (await service.get_user(author.id, author_identity)).id == author.id
    assert (await service.get_user(other_author.id, admin_identity)).id == other_author.id
    with pytest.raises(ForbiddenError):
        await service.get_user(other_author.id, author_identity)
    with pytest.raises(NotFoundError):
        await service.get_user(9999, admin_identity)


async def test_update_self_succeeds(
    db: AsyncSession, author: UserModel, author_identity: Identity
) -> None:
    service = UserService(db)

    user = await service.update_user(
        author.id,
        {"username": "renamed", "email": "Renamed@Example.com", "password": "new-password-1"},
        author_identity,
    )

    assert user.username == "renamed"
    assert user.email == "renamed@example.com"
    assert verify_password("new-password-1", user.hashed_password)


async def test_author_cannot_update_other_user(
    db: AsyncSession, other_author: UserModel, author_identity: Identity
) -> None:
    service = UserService(db)

    with pytest.raises(ForbiddenError):
        await service.update_user(other_author.id, {"username": "pwned"}, author_identity)


async def test_author_cannot_change_own_managed_fields(
    db: AsyncSession, author: UserModel, author_identity: Identity
) -> None:
    service = UserService(db)

    with pytest.raises(ForbiddenError):
        await service.update_user(author.id, {"role": "admin"}, author_identity)
    with pytest.raises(ForbiddenError):
        await service.update_user(author.id, {"blocked": False}, author_identity)


async def test_explicit_null_managed_fields_are_ignored(
    db: AsyncSession, author: UserModel, author_identity: Identity
) -> None:
    service = UserService(db)

    user = await service.update_user(
        author.id, {"username": "still-writer", "role": None, "blocked": None}, author_identity
    )

    assert user.username == "still-writer"
    assert user.role.name == "author"
    assert user.blocked is False


async def test_admin_changes_role_and_blocks(
    db: AsyncSession, author: UserModel, admin_identity: Identity
) -> None:
    service = UserService(db)

    user = await service.update_user(
        author.id, {"role": "admin", "blocked": True}, admin_identity
    )

    assert user.role.name == "admin"
    assert user.blocked is True


async def test_admin_assigns_unknown_role(
    db: AsyncSession, author: UserModel, admin_identity: Identity
) -> None:
    service = UserService(db)

    with pytest.raises(NotFoundError):
        await service.update_user(author.id, {"role": "superuser"}, admin_identity)


async def test_update_to_taken_username_conflicts(
    db: AsyncSession, author: UserModel, other_author: UserModel, author_identity: Identity
) -> None:
    service = UserService(db)

    with pytest.raises(ConflictError):
        await service.update_user(author.id, {"username": "columnist"}, author_identity)
    with pytest.raises(ConflictError):
        await service.update_user(
            author.id, {"email": "COLUMNIST@example.com"}, author_identity
        )


async def test_non_admin_cannot_delete_other_user_or_self(
    db: AsyncSession,
    author: UserModel,
    other_author: UserModel,
    author_identity: Identity,
) -> None:
    service = UserService(db)

    with pytest.raises(ForbiddenError):
        await service.delete_user(other_author.id, author_identity)
    with pytest.raises(ForbiddenError):
        await service.delete_user(author.id, author_identity)

    remaining = await db.scalar(select(func.count()).select_from(UserModel))
    assert remaining == 2


async def test_admin_deletes_user_without_posts(
    db: AsyncSession, other_author: UserModel, admin_identity: Identity
) -> None:
    service = UserService(db)

    deleted = await service.delete_user(other_author.id, admin_identity)

    assert deleted.username == "columnist"
    assert await db.scalar(select(UserModel).where(UserModel.id == other_author.id)) is None


async def test_delete_user_with_posts_conflicts(
    db: AsyncSession, author: UserModel, admin_identity: Identity
) -> None:
    await create_post(db, author, "still-here")
    service = UserService(db)

    with pytest.raises(ConflictError):
        await service.delete_user(author.id, admin_identity)
