from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import InvalidRequestError

import helix.db as db
from helix.db import DataService
from helix.db.models import Activity, Session, User


async def _seed_owner_and_activity(
    data: DataService,
    new_user: Callable[..., User],
    new_activity: Callable[..., Activity],
) -> tuple[User, Activity]:
    user = new_user()
    activity = new_activity(name="Coding")
    await data.users.add(user)
    await data.activities.add(activity)
    await data.commit()
    return user, activity


@pytest.mark.asyncio
async def test_get_by_user_id(
    data_service: DataService,
    new_user: Callable[..., User],
    new_activity: Callable[..., Activity],
    new_session: Callable[..., Session],
) -> None:
    user, activity = await _seed_owner_and_activity(data_service, new_user, new_activity)
    other = new_user()
    await data_service.users.add(other)

    mine = new_session(user, activity, duration_minutes=30, date=datetime(2024, 1, 5, tzinfo=UTC))
    await data_service.sessions.add(mine)
    await data_service.sessions.add(new_session(other, activity))
    await data_service.commit()

    async with db.open_data_service() as verify:
        got = await verify.sessions.get_by_user_id(user.id)
        assert [s.id for s in got] == [mine.id]
        assert got[0].duration_minutes == 30
        assert got[0].mood_rating == "😊"
        assert got[0].date == datetime(2024, 1, 5, tzinfo=UTC)

        assert await verify.sessions.get_by_user_id(uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_get_by_activity_id_eager_loads_activity(
    data_service: DataService,
    new_user: Callable[..., User],
    new_activity: Callable[..., Activity],
    new_session: Callable[..., Session],
) -> None:
    user, activity = await _seed_owner_and_activity(data_service, new_user, new_activity)
    other_activity = new_activity(name="Guitar")
    await data_service.activities.add(other_activity)
    for _ in range(2):
        await data_service.sessions.add(new_session(user, activity))
    await data_service.sessions.add(new_session(user, other_activity))
    await data_service.commit()

    async with db.open_data_service() as verify:
        got = await verify.sessions.get_by_activity_id(activity.id)
        assert len(got) == 2
        for session in got:
            assert session.activity.id == activity.id
            assert session.activity.name == "Coding"
            # Only the activity is eager-loaded; other relations never load implicitly.
            with pytest.raises(InvalidRequestError):
                _ = session.user


@pytest.mark.asyncio
async def test_get_by_date_range_orders_and_includes_bounds(
    data_service: DataService,
    new_user: Callable[..., User],
    new_activity: Callable[..., Activity],
    new_session: Callable[..., Session],
) -> None:
    user, activity = await _seed_owner_and_activity(data_service, new_user, new_activity)
    other = new_user()
    await data_service.users.add(other)

    late = new_session(user, activity, date=datetime(2024, 1, 10, tzinfo=UTC))
    early = new_session(user, activity, date=datetime(2024, 1, 1, tzinfo=UTC))
    outside = new_session(user, activity, date=datetime(2024, 1, 11, tzinfo=UTC))
    not_mine = new_session(other, activity, date=datetime(2024, 1, 5, tzinfo=UTC))
    for session in (late, early, outside, not_mine):
        await data_service.sessions.add(session)
    await data_service.commit()

    async with db.open_data_service() as verify:
        got = await verify.sessions.get_by_date_range(
            user.id, datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 10, tzinfo=UTC)
        )
        assert [s.id for s in got] == [early.id, late.id]
        assert [s.date for s in got] == [datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 10, tzinfo=UTC)]


@pytest.mark.asyncio
async def test_get_by_date_range_breaks_ties_by_id(
    data_service: DataService,
    new_user: Callable[..., User],
    new_activity: Callable[..., Activity],
    new_session: Callable[..., Session],
) -> None:
    user, activity = await _seed_owner_and_activity(data_service, new_user, new_activity)
    same_day = datetime(2024, 2, 2, 7, 30, tzinfo=UTC)
    sessions = [new_session(user, activity, date=same_day) for _ in range(4)]
    for session in sessions:
        await data_service.sessions.add(session)
    await data_service.commit()

    got = await data_service.sessions.get_by_date_range(user.id, same_day, same_day)
    assert [s.id for s in got] == sorted(s.id for s in sessions)


@pytest.mark.asyncio
async def test_get_by_date_range_with_inverted_bounds_is_empty(
    data_service: DataService,
    new_user: Callable[..., User],
    new_activity: Callable[..., Activity],
    new_session: Callable[..., Session],
) -> None:
    user, activity = await _seed_owner_and_activity(data_service, new_user, new_activity)
    await data_service.sessions.add(
        new_session(user, activity, date=datetime(2024, 1, 5, tzinfo=UTC))
    )
    await data_service.commit()

    got = await data_service.sessions.get_by_date_range(
        user.id, datetime(2024, 1, 10, tzinfo=UTC), datetime(2024, 1, 1, tzinfo=UTC)
    )
    assert got == []


@pytest.mark.asyncio
async def test_dates_are_compared_as_instants_across_offsets(
    data_service: DataService,
    new_user: Callable[..., User],
    new_activity: Callable[..., Activity],
    new_session: Callable[..., Session],
) -> None:
    user, activity = await _seed_owner_and_activity(data_service, new_user, new_activity)
    plus_five = timezone(timedelta(hours=5))
    stored = datetime(2024, 3, 1, 10, 0, tzinfo=plus_five)
    session = new_session(user, activity, date=stored)
    await data_service.sessions.add(session)
    await data_service.commit()

    async with db.open_data_service() as verify:
        got = await verify.sessions.get_by_date_range(
            user.id,
            datetime(2024, 3, 1, 4, 0, tzinfo=UTC),
            datetime(2024, 3, 1, 6, 0, tzinfo=UTC),
        )
        assert [s.id for s in got] == [session.id]
        assert got[0].date == stored
        assert got[0].date.tzinfo is UTC

        missed = await verify.sessions.get_by_date_range(
            user.id,
            datetime(2024, 3, 1, 9, 0, tzinfo=UTC),
            datetime(2024, 3, 1, 11, 0, tzinfo=UTC),
        )
        assert missed == []
