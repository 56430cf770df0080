"""Exceptions raised by the data-access layer.

Lookups never raise for a missing row; absence is reported as ``None``.
"""

from __future__ import annotations


class DataAccessError(Exception):
    pass


class InvalidArgumentError(DataAccessError, ValueError):
    """An entity or argument violates a local invariant and was not staged."""


class StaleRecordError(DataAccessError):
    """A detached record was based on an older version of the stored row."""


class PersistenceError(DataAccessError):
    """A commit failed; every change in the batch was rolled back."""

    def __init__(self, message: str, *, staged_count: int = 0) -> None:
        super().__init__(message)
        self.staged_count = staged_count


class UnitOfWorkClosedError(DataAccessError, RuntimeError):
    pass


class UnitOfWorkBusyError(DataAccessError, RuntimeError):
    """The unit of work was used while one of its commits was still running."""
