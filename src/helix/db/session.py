from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from helix.settings import get_settings


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    engine = create_async_engine(database_url, future=True, echo=echo)
    # SQLite only checks session -> user/activity references with this pragma on.
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # No autoflush: staged work must only reach storage through DataService.commit().
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


_settings = get_settings()
engine: AsyncEngine = create_engine(_settings.database_url, echo=_settings.database_echo)
SessionMaker: async_sessionmaker[AsyncSession] = create_sessionmaker(engine)
