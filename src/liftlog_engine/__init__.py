"""Training analytics and personal-record engine."""

from .history import Records, get_exercise_history, get_exercise_records
from .ledger import FinishedWorkout, WorkoutLedger
from .pr_detection import apply_pr_flags, detect_prs_in_workout, has_pr
from .records_index import RecordsIndex
from .store import Collections, InMemoryStore, PostgresStore
from .utils import calculate_1rm

__all__ = [
    "Collections",
    "FinishedWorkout",
    "InMemoryStore",
    "PostgresStore",
    "Records",
    "RecordsIndex",
    "WorkoutLedger",
    "apply_pr_flags",
    "calculate_1rm",
    "detect_prs_in_workout",
    "get_exercise_history",
    "get_exercise_records",
    "has_pr",
]
