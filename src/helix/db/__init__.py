from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from helix.db import session as _session
from helix.db.data_service import DataService

create_engine = _session.create_engine
create_sessionmaker = _session.create_sessionmaker
engine = _session.engine

# NOTE: keep SessionMaker at the package level so tests can monkeypatch
# `helix.db.SessionMaker` and have the factories below pick it up.
SessionMaker: async_sessionmaker[AsyncSession] = _session.SessionMaker


@asynccontextmanager
async def open_data_service() -> AsyncIterator[DataService]:
    async with DataService(SessionMaker()) as data:
        yield data


async def get_data_service() -> AsyncIterator[DataService]:
    """Request-scoped dependency: one DataService per request, closed afterwards."""
    async with open_data_service() as data:
        yield data


__all__ = [
    "DataService",
    "SessionMaker",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_data_service",
    "open_data_service",
]
