"""Unit of work over the three repositories.

A ``DataService`` owns one ``AsyncSession`` for its whole lifetime. Repository
writes only stage work on that session; ``commit()`` applies everything staged
since the previous commit in a single transaction, or nothing at all.

Usage::

    async with open_data_service() as data:
        if not await data.activities.exists_by_name("Coding"):
            await data.activities.add(Activity(name="Coding", color_hex="#4CAF50"))
        await data.commit()

An instance is meant for one request and for sequential use only.
"""

from __future__ import annotations

import enum
import logging
from types import TracebackType

from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helix.db.errors import PersistenceError, UnitOfWorkBusyError, UnitOfWorkClosedError
from helix.db.repos import ActivityRepository, SessionRepository, UserRepository
from helix.logging_config import log_with_fields

logger = logging.getLogger("helix.data_service")


class UnitOfWorkState(enum.StrEnum):
    open = "open"
    committing = "committing"
    failed = "failed"
    closed = "closed"


class DataService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._state = UnitOfWorkState.open
        self._users = UserRepository(session, guard=self._ensure_open)
        self._activities = ActivityRepository(session, guard=self._ensure_open)
        self._sessions = SessionRepository(session, guard=self._ensure_open)

    async def __aenter__(self) -> DataService:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def state(self) -> UnitOfWorkState:
        return self._state

    @property
    def users(self) -> UserRepository:
        self._ensure_open()
        return self._users

    @property
    def activities(self) -> ActivityRepository:
        self._ensure_open()
        return self._activities

    @property
    def sessions(self) -> SessionRepository:
        self._ensure_open()
        return self._sessions

    def _ensure_open(self) -> None:
        if self._state is UnitOfWorkState.closed:
            raise UnitOfWorkClosedError("DataService is closed")
        if self._state is UnitOfWorkState.committing:
            raise UnitOfWorkBusyError(
                "DataService is committing; it does not support concurrent use"
            )

    def staged_count(self) -> int:
        """Number of rows the next commit would insert, update or delete."""
        session = self._session
        modified = sum(1 for obj in session.dirty if session.is_modified(obj))
        return len(session.new) + modified + len(session.deleted)

    @property
    def has_pending_changes(self) -> bool:
        return self.staged_count() > 0

    async def commit(self) -> int:
        """Apply every staged change atomically and return the affected row count.

        On failure the whole batch is rolled back and ``PersistenceError`` is
        raised; the instance stays usable for a new batch.
        """
        self._ensure_open()
        staged = self.staged_count()
        self._state = UnitOfWorkState.committing
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            self._state = UnitOfWorkState.failed
            await self._discard()
            log_with_fields(
                logger,
                logging.WARNING,
                "commit failed, batch rolled back",
                staged=staged,
                error=type(exc).__name__,
            )
            raise PersistenceError(
                f"commit of {staged} staged change(s) failed: {exc}", staged_count=staged
            ) from exc
        except Exception:
            self._state = UnitOfWorkState.failed
            await self._discard()
            raise
        self._state = UnitOfWorkState.open
        log_with_fields(logger, logging.DEBUG, "commit applied", rows=staged)
        return staged

    async def rollback(self) -> None:
        """Discard every change staged since the previous commit."""
        self._ensure_open()
        await self._discard()
        self._state = UnitOfWorkState.open

    async def _discard(self) -> None:
        await self._session.rollback()
        # Rollback expires persistent instances; reload them so entities the
        # caller still holds stay readable and show the stored values.
        for obj in list(self._session.identity_map.values()):
            try:
                await self._session.refresh(obj)
            except InvalidRequestError:  # row no longer exists
                self._session.expunge(obj)

    async def close(self) -> None:
        """Release the connection. Uncommitted changes are rolled back, never applied."""
        if self._state is UnitOfWorkState.closed:
            return
        if self._state is not UnitOfWorkState.committing and self.has_pending_changes:
            log_with_fields(
                logger,
                logging.WARNING,
                "closing with uncommitted changes, discarding",
                staged=self.staged_count(),
            )
        self._state = UnitOfWorkState.closed
        await self._session.close()
