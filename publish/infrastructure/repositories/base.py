from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, ClassVar, Generic, TypeVar

import structlog
from publish.domain.errors import ConflictError, NotFoundError, StoreUnavailableError
from publish.infrastructure.db.base import Base
from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=Base)


@contextmanager
def store_guard(operation: str, label: str, key: Any) -> Iterator[None]:
    """Translate SQLAlchemy failures into domain errors.

    The caller sees ``Failed to <operation> <label> for <key>``; the original
    exception and traceback only go to the log.
    """
    try:
        yield
    except IntegrityError as exc:
        logger.warning("store_integrity_error", operation=operation, entity=label, key=key)
        raise ConflictError(f"{label} {key} conflicts with an existing record") from exc
    except SQLAlchemyError as exc:
        logger.exception("store_error", operation=operation, entity=label, key=key)
        raise StoreUnavailableError(f"Failed to {operation} {label} for {key}") from exc


class Repository(Generic[ModelT]):
    """Query object over one mapped model, bound to a request session."""

    model: ClassVar[type[Base]]
    label: ClassVar[str]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_one(self, *criteria: ColumnElement[bool], key: Any = None) -> ModelT | None:
        with store_guard("get", self.label, key):
            return await self.session.scalar(select(self.model).where(*criteria).limit(1))

    async def get(self, entity_id: int) -> ModelT:
        entity = await self.find_one(self.model.id == entity_id, key=entity_id)  # type: ignore[attr-defined]
        if entity is None:
            raise NotFoundError(f"{self.label} {entity_id} not found")
        return entity

    async def list(
        self,
        *criteria: ColumnElement[bool],
        order_by: Sequence[Any] = (),
    ) -> list[ModelT]:
        stmt = select(self.model).where(*criteria).order_by(*order_by)
        with store_guard("list", self.label, "query"):
            return list((await self.session.scalars(stmt)).unique().all())

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        with store_guard("count", self.label, "query"):
            return int(await self.session.scalar(stmt) or 0)

    async def create(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        with store_guard("create", self.label, getattr(entity, "id", None) or "new"):
            await self.session.flush()
        return entity

    async def update(self, entity: ModelT, **fields: Any) -> ModelT:
        for name, value in fields.items():
            setattr(entity, name, value)
        with store_guard("update", self.label, getattr(entity, "id", None)):
            await self.session.flush()
        return entity

    async def delete(self, entity: ModelT) -> None:
        with store_guard("delete", self.label, getattr(entity, "id", None)):
            await self.session.delete(entity)
            await self.session.flush()
