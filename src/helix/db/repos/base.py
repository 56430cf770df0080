from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Generic, TypeVar

from sqlalchemy import exists, func, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import ColumnProperty
from sqlalchemy.orm.util import identity_key
from sqlalchemy.sql.elements import ColumnElement

from helix.db.errors import InvalidArgumentError, StaleRecordError
from helix.db.models import Activity, Session, User
from helix.logging_config import log_with_fields

ModelT = TypeVar("ModelT", User, Activity, Session)

logger = logging.getLogger("helix.repos")


def _column_default(attr: ColumnProperty[object]) -> object:
    default = attr.columns[0].default
    if default is not None and default.is_scalar:
        return default.arg
    return None


class BaseRepository(Generic[ModelT]):  # noqa: UP046
    """Staged CRUD over one entity type.

    Writes only stage work on the shared session; nothing reaches storage until
    the owning unit of work commits.
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type[ModelT],
        *,
        guard: Callable[[], None] | None = None,
    ) -> None:
        self.session = session
        self.model = model
        # Raises once the owning unit of work is closed.
        self._guard = guard

    def _ensure_open(self) -> None:
        if self._guard is not None:
            self._guard()

    def _fill_unset_columns(self, entity: ModelT) -> None:
        # A hand-built replacement only carries the fields it was given; reset the
        # rest so merge replaces the whole row instead of keeping stored values.
        state = sa_inspect(entity)
        if not state.transient:
            return
        for attr in sa_inspect(self.model).column_attrs:
            if attr.key not in state.dict:
                setattr(entity, attr.key, _column_default(attr))

    def _pending(self, id_: uuid.UUID) -> ModelT | None:
        for obj in self.session.new:
            if isinstance(obj, self.model) and obj.id == id_:
                return obj
        return None

    async def get_by_id(self, id_: uuid.UUID) -> ModelT | None:
        self._ensure_open()
        return await self.session.get(self.model, id_)

    async def get_all(self) -> list[ModelT]:
        self._ensure_open()
        result = await self.session.execute(select(self.model))
        return list(result.scalars().all())

    async def first_where(self, *predicates: ColumnElement[bool]) -> ModelT | None:
        self._ensure_open()
        stmt = select(self.model).where(*predicates).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def exists_where(self, *predicates: ColumnElement[bool]) -> bool:
        self._ensure_open()
        result = await self.session.execute(select(exists().where(*predicates)))
        return bool(result.scalar())

    async def count(self) -> int:
        self._ensure_open()
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())

    async def add(self, entity: ModelT) -> ModelT:
        self._ensure_open()
        if (
            entity in self.session
            or self._pending(entity.id) is not None
            or identity_key(self.model, entity.id) in self.session.identity_map
        ):
            raise InvalidArgumentError(
                f"{self.model.__name__} {entity.id} is already tracked by this unit of work"
            )
        self.session.add(entity)
        log_with_fields(
            logger, logging.DEBUG, "staged insert", entity=self.model.__name__, id=entity.id
        )
        return entity

    async def update(self, entity: ModelT) -> ModelT | None:
        """Stage a full-record replace keyed by ``entity.id``.

        Returns the tracked instance, or ``None`` when no row has that id.
        """
        self._ensure_open()
        if entity in self.session:
            return entity

        existing = await self.session.get(self.model, entity.id)
        if existing is None:
            log_with_fields(
                logger,
                logging.INFO,
                "update skipped, no stored row",
                entity=self.model.__name__,
                id=entity.id,
            )
            return None

        if entity.version is None:
            entity.version = existing.version
        elif entity.version != existing.version:
            raise StaleRecordError(
                f"{self.model.__name__} {entity.id} is at version {existing.version}, "
                f"update was based on version {entity.version}"
            )

        self._fill_unset_columns(entity)
        merged = await self.session.merge(entity)
        log_with_fields(
            logger, logging.DEBUG, "staged update", entity=self.model.__name__, id=entity.id
        )
        return merged

    async def delete(self, id_: uuid.UUID) -> bool:
        """Stage removal of the row with ``id_``; a missing id stages nothing."""
        self._ensure_open()
        pending = self._pending(id_)
        if pending is not None:
            # Cancels an insert staged earlier in the same batch.
            self.session.expunge(pending)
            return True

        obj = await self.get_by_id(id_)
        if obj is None:
            return False

        await self.session.delete(obj)
        log_with_fields(logger, logging.DEBUG, "staged delete", entity=self.model.__name__, id=id_)
        return True
