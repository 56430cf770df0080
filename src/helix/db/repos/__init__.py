"""Repository layer.

These repositories encapsulate the query patterns for the three entities.
They only stage writes; the owning DataService decides when work is committed.
"""

from helix.db.repos.activities import ActivityRepository
from helix.db.repos.base import BaseRepository
from helix.db.repos.sessions import SessionRepository
from helix.db.repos.users import UserRepository

__all__ = [
    "ActivityRepository",
    "BaseRepository",
    "SessionRepository",
    "UserRepository",
]
