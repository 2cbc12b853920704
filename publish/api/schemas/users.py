from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field
from publish.api.schemas.common import CamelModel
from publish.infrastructure.db.models import RoleModel, UserModel


class RoleResponse(CamelModel):
    id: int
    name: str
    description: str | None = None
    permissions: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, role: RoleModel) -> RoleResponse:
        return cls(
            id=role.id,
            name=role.name,
            description=role.description,
            permissions=dict(role.permissions or {}),
        )


class RolesResponse(CamelModel):
    roles: list[RoleResponse]


class UserResponse(CamelModel):
    """Account as exposed over the API; the password hash never leaves the service."""

    id: int
    username: str
    email: str
    confirmed: bool
    blocked: bool
    created_at: datetime
    updated_at: datetime
    role: RoleResponse | None = None

    @classmethod
    def from_model(cls, user: UserModel, *, include_role: bool = False) -> UserResponse:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            confirmed=user.confirmed,
            blocked=user.blocked,
            created_at=user.created_at,
            updated_at=user.updated_at,
            role=RoleResponse.from_model(user.role) if include_role else None,
        )


class UserUpdate(CamelModel):
    username: str | None = Field(None, min_length=3, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8, max_length=128)
    role: str | None = Field(None, description="Role name; admin only")
    blocked: bool | None = Field(None, description="Admin only")
    confirmed: bool | None = Field(None, description="Admin only")
