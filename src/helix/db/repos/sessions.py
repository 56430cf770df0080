from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helix.db.models import Session, as_utc
from helix.db.repos.base import BaseRepository


class SessionRepository(BaseRepository[Session]):
    def __init__(self, session: AsyncSession, *, guard: Callable[[], None] | None = None) -> None:
        super().__init__(session, Session, guard=guard)

    async def get_by_user_id(self, user_id: uuid.UUID) -> list[Session]:
        self._ensure_open()
        result = await self.session.execute(select(Session).where(Session.user_id == user_id))
        return list(result.scalars().all())

    async def get_by_activity_id(self, activity_id: uuid.UUID) -> list[Session]:
        self._ensure_open()
        result = await self.session.execute(
            select(Session)
            .options(selectinload(Session.activity))
            .where(Session.activity_id == activity_id)
        )
        return list(result.scalars().all())

    async def get_by_date_range(
        self, user_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[Session]:
        """Sessions of ``user_id`` with ``start <= date <= end``, oldest first.

        Sessions sharing a date are ordered by id. Bounds are compared in UTC
        (naive bounds count as UTC); an inverted range matches nothing.
        """
        self._ensure_open()
        start, end = as_utc(start), as_utc(end)
        if start > end:
            return []
        result = await self.session.execute(
            select(Session)
            .where(
                Session.user_id == user_id,
                Session.date >= start,
                Session.date <= end,
            )
            .order_by(Session.date.asc(), Session.id.asc())
        )
        return list(result.scalars().all())
