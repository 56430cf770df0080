from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

import helix.db as db
from helix.db import DataService
from helix.db.models import Activity, Base, Session, User


@pytest.fixture
async def test_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    db_path = tmp_path / "test.db"
    engine = db.create_engine(f"sqlite+aiosqlite:///{db_path}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    db.SessionMaker = db.create_sessionmaker(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    _ = test_engine
    async with db.SessionMaker() as session:
        yield session


@pytest.fixture
async def data_service(test_engine: AsyncEngine) -> AsyncIterator[DataService]:
    _ = test_engine
    async with db.open_data_service() as data:
        yield data


def _new_user(**overrides: Any) -> User:
    token = uuid.uuid4().hex[:12]
    fields: dict[str, Any] = {
        "external_id": f"google-{token}",
        "email": f"u-{token}@example.com",
        "display_name": f"User {token}",
    }
    fields.update(overrides)
    return User(**fields)


def _new_activity(**overrides: Any) -> Activity:
    fields: dict[str, Any] = {"name": f"Activity {uuid.uuid4().hex[:8]}", "color_hex": "#4CAF50"}
    fields.update(overrides)
    return Activity(**fields)


def _new_session(user: User, activity: Activity, **overrides: Any) -> Session:
    fields: dict[str, Any] = {
        "user_id": user.id,
        "activity_id": activity.id,
        "duration_minutes": 30,
        "date": datetime(2024, 1, 5, 18, 0, tzinfo=UTC),
        "mood_rating": "😊",
    }
    fields.update(overrides)
    return Session(**fields)


@pytest.fixture
def new_user() -> Callable[..., User]:
    return _new_user


@pytest.fixture
def new_activity() -> Callable[..., Activity]:
    return _new_activity


@pytest.fixture
def new_session() -> Callable[..., Session]:
    return _new_session
