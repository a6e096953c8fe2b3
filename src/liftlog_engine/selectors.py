"""Workout selectors shared by the analytics engines."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from .utils import DAY, parse_timestamp

# Ordered category keyword → muscles fallback when neither the catalog nor the
# workout declares target muscles.
_CATEGORY_MUSCLE_RULES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("push",), ("Chest", "Shoulders", "Triceps")),
    (("pull",), ("Back", "Biceps")),
    (("legs", "leg"), ("Legs",)),
    (("chest", "pec"), ("Chest",)),
    (("back", "lat"), ("Back",)),
    (("shoulder", "delt"), ("Shoulders",)),
    (("bicep",), ("Biceps",)),
    (("tricep", "trice"), ("Triceps",)),
    (("cores", "abs", "ab"), ("Core",)),
)


def map_category_to_muscles(category: Any) -> list[str]:
    if not isinstance(category, str) or not category.strip():
        return ["Other"]
    cat = category.strip().lower()
    for keywords, muscles in _CATEGORY_MUSCLE_RULES:
        if any(keyword in cat for keyword in keywords):
            return list(muscles)
    return ["Other"]


def iter_exercises(workout: Any) -> list[dict[str, Any]]:
    if not isinstance(workout, dict):
        return []
    exercises = workout.get("exercises") or []
    return [ex for ex in exercises if isinstance(ex, dict)]


def iter_sets(exercise: Any) -> list[dict[str, Any]]:
    if not isinstance(exercise, dict):
        return []
    sets = exercise.get("sets") or []
    return [s for s in sets if isinstance(s, dict)]


def workouts_in_range(
    workouts: Iterable[dict[str, Any]],
    start: Any,
    end: Any,
) -> list[dict[str, Any]]:
    start_ts = parse_timestamp(start)
    end_ts = parse_timestamp(end)
    if start_ts is None or end_ts is None:
        return []
    selected = []
    for workout in workouts or []:
        ts = parse_timestamp(workout.get("date") if isinstance(workout, dict) else None)
        if ts is not None and start_ts <= ts <= end_ts:
            selected.append(workout)
    return selected


def recent_workouts(
    workouts: Iterable[dict[str, Any]],
    days: int,
    now: datetime,
) -> list[dict[str, Any]]:
    """Workouts dated within the trailing ``days`` window ending at ``now``."""
    return workouts_in_range(workouts, now - days * DAY, now)


def template_workouts(
    workouts: Iterable[dict[str, Any]],
    template: dict[str, Any] | None,
    *,
    strict_template_id_match: bool = True,
) -> list[dict[str, Any]]:
    """Select the workouts that belong to a template (and its block)."""
    template = template or {}
    template_id = template.get("id")
    block = template.get("block") if isinstance(template.get("block"), dict) else {}
    block_id = block.get("blockId")

    selected = []
    for workout in workouts or []:
        if not isinstance(workout, dict):
            continue
        if strict_template_id_match and template_id is not None:
            if workout.get("templateId") == template_id:
                selected.append(workout)
            continue
        block_ref = workout.get("blockRef") if isinstance(workout.get("blockRef"), dict) else {}
        if block_id and block_ref.get("blockId"):
            if block_ref["blockId"] == block_id:
                selected.append(workout)
            continue
        if workout.get("templateId") == template_id or workout.get("name") == template.get("name"):
            selected.append(workout)
    return selected


def create_exercise_map(catalog: Iterable[dict[str, Any]] | None) -> dict[Any, dict[str, Any]]:
    return {
        entry["id"]: entry
        for entry in catalog or []
        if isinstance(entry, dict) and entry.get("id") is not None
    }


def exercise_key(exercise: dict[str, Any] | None) -> str:
    """Stable per-exercise key for timing statistics (id first, then name)."""
    exercise = exercise or {}
    if exercise.get("exerciseId") is not None:
        return f"id:{exercise['exerciseId']}"
    if exercise.get("id") is not None:
        return f"id:{exercise['id']}"
    return f"name:{exercise.get('name') or 'unknown'}"


def workout_sort_key(workout: dict[str, Any]) -> tuple[float, float]:
    """Chronological sort key (date, then startTime); unparseable dates sort first."""
    date_ts = parse_timestamp(workout.get("date"))
    start_ts = parse_timestamp(workout.get("startTime"))
    return (
        date_ts.timestamp() if date_ts is not None else float("-inf"),
        start_ts.timestamp() if start_ts is not None else float("-inf"),
    )
