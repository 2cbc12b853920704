"""Role-based authorization decoupled from the identity provider."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from publish.domain.errors import ForbiddenError
from publish.domain.models import Identity
from publish.domain.reference_data import ANY, OWN, ROLE_DEFINITIONS

logger = structlog.get_logger()


def resource_owner(resource: Any) -> int | None:
    """Return the user id that owns ``resource``.

    Posts are owned by their author; a user record is owned by that user.
    """
    if resource is None:
        return None
    author_id = getattr(resource, "author_id", None)
    if author_id is not None:
        return author_id
    if getattr(resource, "__tablename__", None) == "users":
        return resource.id
    return None


class PolicyEngine:
    """Evaluates ``(identity, action, resource)`` against a static role table."""

    def __init__(self, role_permissions: Mapping[str, Mapping[str, str]]) -> None:
        self._permissions = {role: dict(perms) for role, perms in role_permissions.items()}

    @classmethod
    def from_definitions(cls, definitions: Iterable[dict[str, Any]]) -> PolicyEngine:
        return cls({item["name"]: item["permissions"] for item in definitions})

    def scope(self, identity: Identity, action: str) -> str | None:
        return self._permissions.get(identity.role, {}).get(action)

    def is_allowed(self, identity: Identity, action: str, resource: Any = None) -> bool:
        scope = self.scope(identity, action)
        if scope == ANY:
            return True
        if scope == OWN:
            return resource is not None and resource_owner(resource) == identity.user_id
        return False

    def authorize(self, identity: Identity, action: str, resource: Any = None) -> None:
        """Raise ``ForbiddenError`` unless ``identity`` may perform ``action``."""
        if self.is_allowed(identity, action, resource):
            return
        logger.warning(
            "authorization_denied",
            user_id=identity.user_id,
            role=identity.role,
            action=action,
            resource_id=getattr(resource, "id", None),
        )
        raise ForbiddenError(f"Not allowed to {action.replace('.', ' ')}")


default_policy = PolicyEngine.from_definitions(ROLE_DEFINITIONS)
