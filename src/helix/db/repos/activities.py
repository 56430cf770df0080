from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helix.db.models import Activity
from helix.db.repos.base import BaseRepository


class ActivityRepository(BaseRepository[Activity]):
    def __init__(self, session: AsyncSession, *, guard: Callable[[], None] | None = None) -> None:
        super().__init__(session, Activity, guard=guard)

    async def exists_by_name(self, name: str) -> bool:
        return await self.exists_where(Activity.name == name)

    async def get_by_name(self, name: str) -> Activity | None:
        return await self.first_where(Activity.name == name)

    async def get_predefined_activities(self) -> list[Activity]:
        """Return the curated catalog shared by every user, ordered by name."""
        self._ensure_open()
        result = await self.session.execute(
            select(Activity)
            .where(Activity.is_predefined.is_(True))
            .order_by(Activity.name.asc(), Activity.created_at.asc())
        )
        return list(result.scalars().all())
