from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from publish.api.deps import get_db_session, get_identity, to_http_exception
from publish.api.schemas.common import Meta
from publish.api.schemas.tags import TagCreateRequest, TagEnvelope, TagListEnvelope, TagResponse
from publish.domain import Identity, PublishError
from publish.domain.services import TagService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=TagListEnvelope)
async def list_tags(
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> TagListEnvelope:
    service = TagService(session)
    try:
        tags = await service.list_tags(identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return TagListEnvelope(
        data=[TagResponse.from_model(tag) for tag in tags],
        meta=Meta(total=len(tags)),
    )


@router.post("", response_model=TagEnvelope, status_code=status.HTTP_201_CREATED)
async def create_tag(
    payload: TagCreateRequest,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> TagEnvelope:
    """Create a tag, or return the existing one with the same name (200)."""
    service = TagService(session)
    try:
        tag, created = await service.create_tag(payload.data.name, identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc

    if not created:
        response.status_code = status.HTTP_200_OK
    return TagEnvelope(data=TagResponse.from_model(tag), meta=Meta(created=created))


@router.delete("/{tag_id}", response_model=TagEnvelope)
async def delete_tag(
    tag_id: int,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> TagEnvelope:
    """Delete a tag (admin only); posts carrying it keep existing without it."""
    service = TagService(session)
    try:
        tag = await service.delete_tag(tag_id, identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return TagEnvelope(data=TagResponse.from_model(tag))
