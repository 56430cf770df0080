from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
    Uuid,
    event,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from helix.db.errors import InvalidArgumentError

# Known mood symbols, lowest to highest. Stored as free text; not validated.
MOOD_RATINGS: tuple[str, ...] = ("😞", "😐", "😊", "🤩")


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware timestamp stored and returned in UTC.

    SQLite keeps no offset, so values are normalized before they are bound;
    naive input is taken to be UTC already.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    # Subject id issued by the external identity provider (Google).
    external_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    # Not unique in storage; duplicates are pre-empted by exists_by_name only.
    name: Mapped[str] = mapped_column(String(200), index=True)
    color_hex: Mapped[str] = mapped_column(String(9))
    goal: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_predefined: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime())

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Session(Base):
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_sessions_duration_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True)
    activity_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("activities.id"), index=True)

    duration_minutes: Mapped[int] = mapped_column(Integer)
    date: Mapped[datetime] = mapped_column(UTCDateTime(), index=True)
    mood_rating: Mapped[str] = mapped_column(String(16))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Only populated by queries that eager-load them; never navigated lazily.
    user: Mapped[User] = relationship(lazy="raise")
    activity: Mapped[Activity] = relationship(lazy="raise")

    __mapper_args__ = {"version_id_col": version}

    @validates("duration_minutes")
    def _validate_duration(self, key: str, value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InvalidArgumentError(f"{key} must be a positive integer, got {value!r}")
        return value


@event.listens_for(Base, "init", propagate=True)
def _assign_construction_defaults(target: Base, args: Any, kwargs: dict[str, Any]) -> None:
    # Ids and timestamps exist from construction on, before anything is staged.
    if kwargs.get("id") is None:
        kwargs["id"] = uuid.uuid4()
    if isinstance(target, Activity):
        if kwargs.get("created_at") is None:
            kwargs["created_at"] = datetime.now(UTC)
        kwargs.setdefault("is_predefined", False)
