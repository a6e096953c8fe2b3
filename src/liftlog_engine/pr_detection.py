"""Personal-record detection for a just-completed (or just-edited) workout.

Three independent record types are tested per work set against the records
from *prior* workouts only, so a record always means "better than everything
before this session". An exercise's first-ever session is a baseline and
never produces records.

Detection is pure: it returns sparse per-set flags and ``apply_pr_flags``
merges them into a copy of the workout, clearing stale flags first so an
edit can both grant and revoke PR status.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .history import RECORD_TYPES, Records, get_exercise_records
from .sets import PR_FLAG_FIELDS, is_work_set
from .utils import as_number, calculate_1rm as default_calculate_1rm

_FLAG_FOR_RECORD_TYPE: dict[str, str] = dict(zip(RECORD_TYPES, PR_FLAG_FIELDS))


@dataclass(frozen=True)
class ExercisePRs:
    """Records one exercise hit, keyed by positions in the stored workout.

    ``occurrences`` maps exercise position -> set position -> record types, so
    an exercise logged twice in one session keeps the flags of both entries.
    Positions count every stored entry, malformed ones included.
    """

    exercise_id: Any
    exercise_name: str | None
    record_types: frozenset[str] = frozenset()
    occurrences: dict[int, dict[int, list[str]]] = field(default_factory=dict)

    @property
    def exercise_index(self) -> int:
        return min(self.occurrences)

    @property
    def records_per_set(self) -> dict[int, list[str]]:
        return self.occurrences[self.exercise_index]

    def to_dict(self) -> dict[str, Any]:
        return {
            "exerciseName": self.exercise_name,
            "recordTypes": [t for t in RECORD_TYPES if t in self.record_types],
            "recordsPerSet": {idx: list(types) for idx, types in self.records_per_set.items()},
            "occurrences": {
                ex_idx: {idx: list(types) for idx, types in per_set.items()}
                for ex_idx, per_set in self.occurrences.items()
            },
        }


def _positioned(container: Any, key: str) -> list[tuple[int, dict[str, Any]]]:
    # Stored positions; entries that are not objects are skipped but still counted.
    if not isinstance(container, dict):
        return []
    return [(i, item) for i, item in enumerate(container.get(key) or []) if isinstance(item, dict)]


def _set_record_types(
    set_data: dict[str, Any],
    prior: Records,
    calculate_1rm: Callable[[Any, Any], float],
) -> list[str]:
    if not is_work_set(set_data):
        return []
    kg = as_number(set_data.get("kg"))
    reps = as_number(set_data.get("reps"))
    if kg <= 0 or reps <= 0:
        return []

    hits: list[str] = []
    if calculate_1rm(kg, reps) > prior.best_1rm:
        hits.append("best1RM")
    if kg * reps > prior.best_set_volume:
        hits.append("bestSetVolume")
    if kg > prior.max_weight:
        hits.append("heaviestWeight")
    return hits


def detect_prs_in_workout(
    completed_workout: dict[str, Any] | None,
    prior_workouts: list[dict[str, Any]],
    calculate_1rm: Callable[[Any, Any], float] = default_calculate_1rm,
    get_records: Callable[[Any, list[dict[str, Any]]], Records] = get_exercise_records,
) -> dict[Any, ExercisePRs]:
    """Map exerciseId -> records hit in this workout. Empty map means no PR.

    Each occurrence of an exercise is judged against prior history on its
    own; occurrences never compete with each other.
    ``prior_workouts`` must not contain the workout being evaluated.
    """
    if not isinstance(completed_workout, dict):
        return {}

    record_types: dict[Any, set[str]] = {}
    occurrences: dict[Any, dict[int, dict[int, list[str]]]] = {}
    names: dict[Any, str | None] = {}
    prior_by_id: dict[Any, Records | None] = {}

    for ex_index, exercise in _positioned(completed_workout, "exercises"):
        exercise_id = exercise.get("exerciseId")
        if exercise_id is None:
            continue

        if exercise_id not in prior_by_id:
            prior_by_id[exercise_id] = get_records(exercise_id, prior_workouts)
        prior = prior_by_id[exercise_id]
        if prior is None or not prior.has_history:
            continue

        per_set: dict[int, list[str]] = {}
        for set_index, set_data in _positioned(exercise, "sets"):
            hits = _set_record_types(set_data, prior, calculate_1rm)
            if hits:
                per_set[set_index] = hits

        if per_set:
            names.setdefault(exercise_id, exercise.get("name"))
            occurrences.setdefault(exercise_id, {})[ex_index] = per_set
            types = record_types.setdefault(exercise_id, set())
            for hits in per_set.values():
                types.update(hits)

    return {
        exercise_id: ExercisePRs(
            exercise_id=exercise_id,
            exercise_name=names[exercise_id],
            record_types=frozenset(record_types[exercise_id]),
            occurrences=occurrences[exercise_id],
        )
        for exercise_id in occurrences
    }


def has_pr(detected: dict[Any, ExercisePRs]) -> bool:
    return bool(detected)


def apply_pr_flags(workout: dict[str, Any], detected: dict[Any, ExercisePRs]) -> dict[str, Any]:
    """Return a copy of ``workout`` with every set's PR flags re-derived."""
    flagged = copy.deepcopy(workout)
    by_index: dict[int, dict[int, list[str]]] = {}
    for pr in detected.values():
        by_index.update(pr.occurrences)

    for ex_index, exercise in _positioned(flagged, "exercises"):
        per_set = by_index.get(ex_index, {})
        for set_index, set_data in _positioned(exercise, "sets"):
            hits = per_set.get(set_index, [])
            for record_type, flag in _FLAG_FOR_RECORD_TYPE.items():
                set_data[flag] = record_type in hits
    return flagged
