"""Set/workout normalization.

Resolves the implicit set type of legacy sets (``warmup`` boolean only) and
fills storage defaults so every persisted set is self-describing.
"""

from __future__ import annotations

from typing import Any

SET_TYPES: tuple[str, ...] = ("warmup", "work", "drop", "failure", "tempo", "pause")

_VALID_SET_TYPES = frozenset(SET_TYPES)

PR_FLAG_FIELDS: tuple[str, ...] = ("isBest1RM", "isBestSetVolume", "isHeaviestWeight")

DEFAULT_PRIORITY = 3

_SET_TIME_WEIGHTS: dict[str, float] = {
    "warmup": 0.65,
    "drop": 1.2,
    "failure": 1.2,
    "tempo": 1.35,
    "pause": 1.35,
}


def resolve_set_type(set_data: Any) -> str:
    if not isinstance(set_data, dict):
        return "work"
    set_type = set_data.get("setType")
    if isinstance(set_type, str) and set_type in _VALID_SET_TYPES:
        return set_type
    return "warmup" if set_data.get("warmup") else "work"


def is_warmup_set(set_data: Any) -> bool:
    return resolve_set_type(set_data) == "warmup"


def is_work_set(set_data: Any) -> bool:
    """A completed, non-warmup set: the unit of real training volume."""
    if not isinstance(set_data, dict):
        return False
    return bool(set_data.get("completed")) and not is_warmup_set(set_data)


def normalize_set_for_storage(
    set_data: dict[str, Any] | None,
    fallback_type: str | None = None,
) -> dict[str, Any]:
    set_data = dict(set_data or {})
    resolved = fallback_type if fallback_type in _VALID_SET_TYPES else resolve_set_type(set_data)
    return {
        **set_data,
        "setType": resolved,
        "warmup": resolved == "warmup",
        "rir": set_data.get("rir"),
        "tempo": set_data.get("tempo"),
        "pauseSec": set_data.get("pauseSec"),
    }


def normalize_sets_for_storage(
    sets: list[dict[str, Any]] | None,
    fallback_type: str | None = None,
) -> list[dict[str, Any]]:
    return [normalize_set_for_storage(s, fallback_type) for s in sets or [] if isinstance(s, dict)]


def normalize_exercise_for_storage(exercise: dict[str, Any] | None) -> dict[str, Any]:
    exercise = dict(exercise or {})
    priority = exercise.get("priority")
    normalized = {
        **exercise,
        "priority": priority if priority is not None else DEFAULT_PRIORITY,
        "nonNegotiable": bool(exercise.get("nonNegotiable", False)),
        "estimatedSetSec": exercise.get("estimatedSetSec"),
        "sets": normalize_sets_for_storage(exercise.get("sets")),
    }
    target_muscles = exercise.get("targetMuscles")
    if isinstance(target_muscles, list):
        normalized["targetMuscles"] = list(target_muscles)
    else:
        normalized.pop("targetMuscles", None)
    return normalized


def normalize_workout_for_storage(workout: dict[str, Any]) -> dict[str, Any]:
    return {
        **workout,
        "tags": list(workout.get("tags") or []),
        "exercises": [
            normalize_exercise_for_storage(ex)
            for ex in workout.get("exercises") or []
            if isinstance(ex, dict)
        ],
    }


def set_time_weight(set_type: str = "work") -> float:
    """Relative time cost of a set type versus a straight work set."""
    return _SET_TIME_WEIGHTS.get(set_type, 1.0)
