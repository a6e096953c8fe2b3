"""Greedy session trimming to fit a time budget.

Per-set durations come from the athlete's own history (session duration spread
over its completed work sets), weighted by set type, plus rest. When the plan
does not fit, sets are removed lowest-priority first, warmups before work sets
and later sets before earlier ones, never touching non-negotiable exercises
and never dropping an exercise below its minimum work sets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..selectors import exercise_key, iter_exercises, iter_sets
from ..sets import (
    DEFAULT_PRIORITY,
    normalize_set_for_storage,
    resolve_set_type,
    set_time_weight,
)
from ..utils import as_number, half_up


@dataclass(frozen=True)
class OptimizerOptions:
    min_work_sets_per_exercise: int = 1
    keep_top_priority_count: int = 1
    default_set_sec: float = 150
    default_rest_sec: float = 90


@dataclass(frozen=True)
class RemovedSets:
    exercise_name: str
    sets_removed: int

    def to_dict(self) -> dict[str, Any]:
        return {"exerciseName": self.exercise_name, "setsRemoved": self.sets_removed}


@dataclass(frozen=True)
class OptimizedSession:
    optimized_template: dict[str, Any]
    estimated_minutes_before: int
    estimated_minutes_after: int
    removed: list[RemovedSets]
    preserved_core: list[str]

    @property
    def trimmed(self) -> bool:
        return bool(self.removed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "optimizedTemplate": self.optimized_template,
            "estimatedMinutesBefore": self.estimated_minutes_before,
            "estimatedMinutesAfter": self.estimated_minutes_after,
            "removed": [r.to_dict() for r in self.removed],
            "preservedCore": list(self.preserved_core),
        }


@dataclass(frozen=True)
class _Candidate:
    ex_index: int
    set_index: int
    seconds: float
    is_warmup: bool
    priority: float
    non_negotiable: bool
    exercise_name: str


def _completed_work_sets(exercise: dict[str, Any]) -> int:
    return sum(
        1
        for s in iter_sets(exercise)
        if s.get("completed") and resolve_set_type(s) != "warmup"
    )


def history_set_duration_index(
    history: list[dict[str, Any]],
    default_set_sec: float = 150,
) -> dict[str, float]:
    """Average seconds per work set, keyed by ``exercise_key``."""
    totals: dict[str, list[float]] = {}
    for workout in history or []:
        if not isinstance(workout, dict):
            continue
        duration_min = as_number(workout.get("duration"))
        if duration_min <= 0:
            continue

        exercises = iter_exercises(workout)
        total_work_sets = sum(_completed_work_sets(ex) for ex in exercises)
        if total_work_sets == 0:
            continue
        sec_per_set = duration_min * 60 / total_work_sets

        for exercise in exercises:
            work_sets = _completed_work_sets(exercise)
            if work_sets == 0:
                continue
            entry = totals.setdefault(exercise_key(exercise), [0.0, 0])
            entry[0] += sec_per_set * work_sets
            entry[1] += work_sets

    return {
        key: (total_sec / total_sets if total_sets > 0 else default_set_sec)
        for key, (total_sec, total_sets) in totals.items()
    }


def estimate_set_seconds(
    set_data: dict[str, Any],
    exercise: dict[str, Any],
    timing_index: dict[str, float],
    options: OptimizerOptions,
) -> float:
    base_sec = (
        timing_index.get(exercise_key(exercise))
        or as_number(exercise.get("estimatedSetSec"))
        or options.default_set_sec
    )
    set_type = resolve_set_type(set_data)
    if set_type == "warmup":
        rest_sec = half_up(options.default_rest_sec * 0.5)
    else:
        rest_sec = options.default_rest_sec
    return base_sec * set_time_weight(set_type) + rest_sec


def _clone_template(template: dict[str, Any] | None) -> dict[str, Any]:
    template = dict(template or {})
    template["exercises"] = [
        {
            **exercise,
            "sets": [normalize_set_for_storage({**s, "completed": False}) for s in iter_sets(exercise)],
        }
        for exercise in iter_exercises(template)
    ]
    return template


def _priority(exercise: dict[str, Any]) -> float:
    return as_number(exercise.get("priority")) or DEFAULT_PRIORITY


def _exercise_name(exercise: dict[str, Any], position: int) -> str:
    return exercise.get("name") or f"Exercise {position + 1}"


def _preserved_core(exercises: list[dict[str, Any]], keep_top_priority_count: int) -> list[str]:
    ranked = sorted(enumerate(exercises), key=lambda item: _priority(item[1]))
    return [
        _exercise_name(exercise, rank)
        for rank, (_, exercise) in enumerate(ranked)
        if exercise.get("nonNegotiable") or rank < keep_top_priority_count
    ]


def _minutes(seconds: float) -> int:
    return max(0, int(seconds // 60))


def optimize_session(
    template: dict[str, Any] | None,
    time_limit_minutes: Any,
    history: list[dict[str, Any]] | None = None,
    options: OptimizerOptions | None = None,
) -> OptimizedSession:
    options = options or OptimizerOptions()
    time_limit = as_number(time_limit_minutes)
    plan = _clone_template(template)
    exercises = plan["exercises"]

    if not time_limit or not exercises:
        return OptimizedSession(
            optimized_template=plan,
            estimated_minutes_before=0,
            estimated_minutes_after=0,
            removed=[],
            preserved_core=[],
        )

    timing_index = history_set_duration_index(history or [], options.default_set_sec)
    preserved_core = _preserved_core(exercises, options.keep_top_priority_count)

    total_seconds = 0.0
    work_set_counts: list[int] = []
    candidates: list[_Candidate] = []
    for ex_index, exercise in enumerate(exercises):
        work_sets = 0
        for set_index, set_data in enumerate(exercise["sets"]):
            seconds = estimate_set_seconds(set_data, exercise, timing_index, options)
            total_seconds += seconds
            is_warmup = resolve_set_type(set_data) == "warmup"
            if not is_warmup:
                work_sets += 1
            candidates.append(
                _Candidate(
                    ex_index=ex_index,
                    set_index=set_index,
                    seconds=seconds,
                    is_warmup=is_warmup,
                    priority=_priority(exercise),
                    non_negotiable=bool(exercise.get("nonNegotiable")),
                    exercise_name=_exercise_name(exercise, ex_index),
                )
            )
        work_set_counts.append(work_sets)

    minutes_before = _minutes(total_seconds)
    if minutes_before <= time_limit:
        return OptimizedSession(
            optimized_template=plan,
            estimated_minutes_before=minutes_before,
            estimated_minutes_after=minutes_before,
            removed=[],
            preserved_core=preserved_core,
        )

    # Lower priority means a larger number, so it sorts (and is trimmed) first.
    candidates.sort(
        key=lambda c: (c.non_negotiable, -c.priority, not c.is_warmup, -c.set_index)
    )

    removed_keys: set[tuple[int, int]] = set()
    removed_by_exercise: dict[str, int] = {}
    for candidate in candidates:
        if _minutes(total_seconds) <= time_limit:
            break
        if candidate.non_negotiable:
            continue
        if not candidate.is_warmup:
            remaining = work_set_counts[candidate.ex_index]
            if remaining <= options.min_work_sets_per_exercise:
                continue
            work_set_counts[candidate.ex_index] = remaining - 1

        removed_keys.add((candidate.ex_index, candidate.set_index))
        total_seconds -= candidate.seconds
        removed_by_exercise[candidate.exercise_name] = (
            removed_by_exercise.get(candidate.exercise_name, 0) + 1
        )

    plan["exercises"] = [
        {
            **exercise,
            "sets": [
                s for set_index, s in enumerate(exercise["sets"])
                if (ex_index, set_index) not in removed_keys
            ],
        }
        for ex_index, exercise in enumerate(exercises)
    ]

    return OptimizedSession(
        optimized_template=plan,
        estimated_minutes_before=minutes_before,
        estimated_minutes_after=_minutes(total_seconds),
        removed=[RemovedSets(name, count) for name, count in removed_by_exercise.items()],
        preserved_core=preserved_core,
    )
