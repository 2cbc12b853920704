from __future__ import annotations

from pydantic import Field
from publish.api.schemas.common import CamelModel, Meta
from publish.infrastructure.db.models import TagModel


class TagResponse(CamelModel):
    id: int
    name: str

    @classmethod
    def from_model(cls, tag: TagModel) -> TagResponse:
        return cls(id=tag.id, name=tag.name)


class TagCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=128)


class TagCreateRequest(CamelModel):
    data: TagCreate


class TagEnvelope(CamelModel):
    data: TagResponse
    meta: Meta = Field(default_factory=Meta)


class TagListEnvelope(CamelModel):
    data: list[TagResponse]
    meta: Meta = Field(default_factory=Meta)
