"""Exception types raised by the liftlog engine.

Analytics never raise on bad or missing data; only the storage layer does.
"""

from __future__ import annotations


class LiftlogError(Exception):
    """Base class for engine errors."""


class StoreError(LiftlogError):
    """A collection store read or write failed."""

    def __init__(self, operation: str, collection: str, message: str) -> None:
        self.operation = operation
        self.collection = collection
        super().__init__(f"{operation} on {collection!r} failed: {message}")


class WorkoutNotFoundError(LiftlogError):
    """An edit or delete named a workout id the ledger does not hold."""

    def __init__(self, workout_id: object) -> None:
        self.workout_id = workout_id
        super().__init__(f"workout {workout_id!r} not found")
