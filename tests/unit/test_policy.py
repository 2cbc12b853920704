from __future__ import annotations

from types import SimpleNamespace

import pytest
from publish.domain import ForbiddenError, Identity
from publish.domain.policy import PolicyEngine, default_policy, resource_owner
from publish.infrastructure.db.models import PostModel, UserModel

ADMIN = Identity(user_id=1, username="editor", role="admin")
AUTHOR = Identity(user_id=2, username="writer", role="author")
STRANGER = Identity(user_id=3, username="nobody", role="unknown")


def _post(author_id: int) -> PostModel:
    return PostModel(id=10, title="t", slug="t", body="", author_id=author_id)


def test_resource_owner_for_posts_and_users() -> None:
    assert resource_owner(_post(2)) == 2
    assert resource_owner(UserModel(id=5, username="u", email="u@example.com")) == 5
    assert resource_owner(SimpleNamespace(id=9)) is None
    assert resource_owner(None) is None


def test_admin_may_act_on_any_resource() -> None:
    for action in ("post.update", "post.delete", "user.delete", "user.list", "tag.delete"):
        default_policy.authorize(ADMIN, action, _post(99))


def test_author_may_mutate_own_post_only() -> None:
    default_policy.authorize(AUTHOR, "post.update", _post(2))
    default_policy.authorize(AUTHOR, "post.delete", _post(2))

    with pytest.raises(ForbiddenError):
        default_policy.authorize(AUTHOR, "post.update", _post(99))
    with pytest.raises(ForbiddenError):
        default_policy.authorize(AUTHOR, "post.delete", _post(99))


def test_own_scope_requires_a_resource() -> None:
    assert default_policy.is_allowed(AUTHOR, "post.update") is False


def test_author_may_update_self_but_never_delete_users() -> None:
    me = UserModel(id=2, username="writer", email="w@example.com")
    other = UserModel(id=8, username="x", email="x@example.com")

    default_policy.authorize(AUTHOR, "user.update", me)
    with pytest.raises(ForbiddenError):
        default_policy.authorize(AUTHOR, "user.update", other)
    with pytest.raises(ForbiddenError):
        default_policy.authorize(AUTHOR, "user.delete", me)
    with pytest.raises(ForbiddenError):
        default_policy.authorize(AUTHOR, "user.list")


def test_unknown_role_has_no_permissions() -> None:
    assert default_policy.scope(STRANGER, "post.read") is None
    with pytest.raises(ForbiddenError):
        default_policy.authorize(STRANGER, "post.read")


def test_custom_role_table() -> None:
    policy = PolicyEngine({"reviewer": {"post.read_draft": "any"}})
    reviewer = Identity(user_id=4, username="r", role="reviewer")

    assert policy.is_allowed(reviewer, "post.read_draft", _post(1)) is True
    assert policy.is_allowed(reviewer, "post.update", _post(4)) is False


def test_author_reads_only_own_account() -> None:
    me = UserModel(id=2, username="writer", email="w@example.com")
    other = UserModel(id=8, username="x", email="x@example.com")

    default_policy.authorize(AUTHOR, "user.read", me)
    with pytest.raises(ForbiddenError):
        default_policy.authorize(AUTHOR, "user.read", other)
