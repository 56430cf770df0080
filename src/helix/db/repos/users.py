from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from helix.db.models import User
from helix.db.repos.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, session: AsyncSession, *, guard: Callable[[], None] | None = None) -> None:
        super().__init__(session, User, guard=guard)

    async def get_by_external_id(self, external_id: str) -> User | None:
        return await self.first_where(User.external_id == external_id)

    async def get_by_email(self, email: str) -> User | None:
        return await self.first_where(User.email == email)

    async def exists_by_email(self, email: str) -> bool:
        # Exact match. Advisory only: a concurrent insert can land between this
        # check and commit, in which case the unique constraint fails the commit.
        return await self.exists_where(User.email == email)
