"""Per-muscle weekly work-set landmarks (low / target / high band).

The band is personal: target is the average of the athlete's own active weeks
in the window, so it tracks what they actually recover from rather than a
population table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..selectors import iter_exercises, iter_sets, map_category_to_muscles, recent_workouts
from ..sets import is_work_set
from ..utils import half_up, resolve_now, week_start_key

MUSCLE_SOURCES = ("exerciseDBFirst", "workoutFirst")


@dataclass(frozen=True)
class VolumeLandmarkOptions:
    weeks_window: int = 12
    min_weeks_with_data: int = 4
    muscles_source: str = "exerciseDBFirst"
    exercise_map: dict[Any, dict[str, Any]] = field(default_factory=dict)
    now: datetime | None = None


@dataclass(frozen=True)
class MuscleLandmark:
    low: int
    target: int
    high: int
    recent: int
    trend: str  # up | down | flat
    confidence: str  # low | medium | high

    def to_dict(self) -> dict[str, Any]:
        return {
            "low": self.low,
            "target": self.target,
            "high": self.high,
            "recent": self.recent,
            "trend": self.trend,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class VolumeLandmarks:
    by_muscle: dict[str, MuscleLandmark]
    generated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "byMuscle": {m: lm.to_dict() for m, lm in self.by_muscle.items()},
            "generatedAt": self.generated_at,
        }


def _non_empty_list(value: Any) -> list[str] | None:
    if isinstance(value, (list, tuple)) and value:
        return list(value)
    return None


def resolve_muscles(
    exercise: dict[str, Any],
    exercise_map: dict[Any, dict[str, Any]],
    muscles_source: str = "exerciseDBFirst",
) -> list[str]:
    """Catalog muscles, else workout-declared target muscles, else the category fallback.

    ``workoutFirst`` swaps the first two sources.
    """
    exercise_id = exercise.get("exerciseId")
    entry = exercise_map.get(exercise_id) if exercise_id is not None else None
    from_catalog = _non_empty_list(entry.get("muscles")) if isinstance(entry, dict) else None
    from_workout = _non_empty_list(exercise.get("targetMuscles"))

    if muscles_source == "exerciseDBFirst":
        ordered = (from_catalog, from_workout)
    else:
        ordered = (from_workout, from_catalog)
    for muscles in ordered:
        if muscles:
            return muscles
    return map_category_to_muscles(exercise.get("category"))


def _average(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _trend(recent: list[float], previous: list[float]) -> str:
    recent_avg = _average(recent)
    previous_avg = _average(previous)
    if previous_avg <= 0:
        return "up" if recent_avg > 0 else "flat"
    if recent_avg > previous_avg * 1.08:
        return "up"
    if recent_avg < previous_avg * 0.92:
        return "down"
    return "flat"


def _confidence(active_weeks: int, min_weeks_with_data: int) -> str:
    if active_weeks >= 8:
        return "high"
    if active_weeks >= min_weeks_with_data:
        return "medium"
    return "low"


def landmark_from_series(weekly_series: list[float], min_weeks_with_data: int = 4) -> MuscleLandmark:
    """Derive one muscle's band from its chronological weekly set counts."""
    active = [v for v in weekly_series if v > 0]
    target = max(0, half_up(_average(active)))
    recent_slice = weekly_series[-4:]
    previous_slice = weekly_series[max(0, len(weekly_series) - 8):max(0, len(weekly_series) - 4)]

    return MuscleLandmark(
        low=max(0, half_up(target * 0.8)),
        target=target,
        high=max(target, half_up(target * 1.2)),
        recent=half_up(_average(recent_slice)),
        trend=_trend(recent_slice, previous_slice),
        confidence=_confidence(len(active), min_weeks_with_data),
    )


def compute_volume_landmarks(
    workouts: list[dict[str, Any]],
    options: VolumeLandmarkOptions | None = None,
) -> VolumeLandmarks:
    options = options or VolumeLandmarkOptions()
    reference = resolve_now(options.now)
    exercise_map = options.exercise_map or {}

    by_muscle_week: dict[str, dict[str, int]] = {}
    week_keys: set[str] = set()

    for workout in recent_workouts(workouts, options.weeks_window * 7, reference):
        week_key = week_start_key(workout.get("date"))
        if week_key is None:
            continue
        week_keys.add(week_key)

        for exercise in iter_exercises(workout):
            work_sets = sum(1 for s in iter_sets(exercise) if is_work_set(s))
            if work_sets == 0:
                continue
            for muscle in resolve_muscles(exercise, exercise_map, options.muscles_source):
                weeks = by_muscle_week.setdefault(muscle, {})
                weeks[week_key] = weeks.get(week_key, 0) + work_sets

    ordered_weeks = sorted(week_keys)
    by_muscle = {
        muscle: landmark_from_series(
            [weeks.get(key, 0) for key in ordered_weeks],
            options.min_weeks_with_data,
        )
        for muscle, weeks in by_muscle_week.items()
    }
    return VolumeLandmarks(by_muscle=by_muscle, generated_at=reference.isoformat())
