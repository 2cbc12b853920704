from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from publish.api.deps import get_db_session, get_identity, to_http_exception
from publish.api.schemas.common import Meta
from publish.api.schemas.posts import (
    PostCreateRequest,
    PostEnvelope,
    PostListEnvelope,
    PostResponse,
    PostUpdateRequest,
)
from publish.domain import Identity, PostFilter, PostSort, PostStatus, PublishError
from publish.domain.services import PostService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("", response_model=PostListEnvelope)
async def list_posts(
    author: int | None = Query(None, description="Author user id"),
    tag: str | None = Query(None, description="Tag name"),
    post_status: PostStatus | None = Query(None, alias="status"),
    sort: str | None = Query(None, description="field:asc|desc, default updatedAt:desc"),
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> PostListEnvelope:
    """List posts visible to the caller: every published post plus drafts they may read."""
    try:
        post_sort = PostSort.parse(sort)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    service = PostService(session)
    try:
        posts = await service.list_posts(
            identity,
            PostFilter(author_id=author, tag=tag, status=post_status),
            post_sort,
        )
    except PublishError as exc:
        raise to_http_exception(exc) from exc

    return PostListEnvelope(
        data=[PostResponse.from_model(post) for post in posts],
        meta=Meta(total=len(posts)),
    )


@router.get("/{identifier}", response_model=PostEnvelope)
async def get_post(
    identifier: str,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> PostEnvelope:
    """Get a post by numeric id or slug."""
    service = PostService(session)
    try:
        post = await service.get_post(identifier, identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return PostEnvelope(data=PostResponse.from_model(post))


@router.post("", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreateRequest,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
    idempotency_key: str | None = Header(None, alias="Idempotency-Key", max_length=64),
) -> PostEnvelope:
    """Create a draft (or already published) post authored by the caller."""
    fields = payload.data
    service = PostService(session)
    try:
        post, created = await service.create_post(
            identity,
            title=fields.title,
            slug=fields.slug,
            body=fields.body,
            tag_ids=fields.tags,
            author_id=fields.author,
            published_at=fields.published_at,
            idempotency_key=idempotency_key,
        )
    except PublishError as exc:
        raise to_http_exception(exc) from exc

    if not created:
        response.status_code = status.HTTP_200_OK
    return PostEnvelope(data=PostResponse.from_model(post), meta=Meta(created=created))


@router.put("/{post_id}", response_model=PostEnvelope)
async def update_post(
    post_id: int,
    payload: PostUpdateRequest,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> PostEnvelope:
    """Partially update a post; send ``publishedAt`` to publish or ``null`` to unpublish."""
    service = PostService(session)
    try:
        post = await service.update_post(post_id, payload.data.to_patch(), identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return PostEnvelope(data=PostResponse.from_model(post))


@router.delete("/{post_id}", response_model=PostEnvelope)
async def delete_post(
    post_id: int,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_identity),
) -> PostEnvelope:
    service = PostService(session)
    try:
        post = await service.delete_post(post_id, identity)
    except PublishError as exc:
        raise to_http_exception(exc) from exc
    return PostEnvelope(data=PostResponse.from_model(post))
