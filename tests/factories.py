"""Workout document builders shared by the test modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

# A Monday, so week boundaries in tests are easy to reason about.
NOW = datetime(2026, 3, 16, 12, 0, tzinfo=timezone.utc)


def day(days_ago: int) -> str:
    return (NOW - timedelta(days=days_ago)).date().isoformat()


def work_set(kg: Any, reps: Any, **extra: Any) -> dict[str, Any]:
    return {"kg": kg, "reps": reps, "completed": True, "setType": "work", "warmup": False, **extra}


def warmup_set(kg: Any, reps: Any, **extra: Any) -> dict[str, Any]:
    return {"kg": kg, "reps": reps, "completed": True, "setType": "warmup", "warmup": True, **extra}


def exercise(exercise_id: Any, *sets: dict[str, Any], name: str | None = None, **extra: Any) -> dict[str, Any]:
    return {
        "exerciseId": exercise_id,
        "name": name or f"Exercise {exercise_id}",
        "sets": list(sets),
        **extra,
    }


def workout(workout_id: Any, date: str, *exercises: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {
        "id": workout_id,
        "date": date,
        "name": extra.pop("name", f"Workout {workout_id}"),
        "exercises": list(exercises),
        "tags": extra.pop("tags", []),
        **extra,
    }
