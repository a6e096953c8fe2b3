"""Post-workout summary: template drift, volume comparison, feedback text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .selectors import create_exercise_map, iter_exercises, iter_sets, map_category_to_muscles
from .sets import is_work_set
from .utils import as_number, parse_timestamp

RADAR_AXES: tuple[str, ...] = ("Chest", "Back", "Legs", "Shoulders", "Biceps", "Triceps", "Core")

_FEEDBACK_TEXT: dict[str, dict[str, str]] = {
    "crushing": {
        "epic": "💪 Beast mode activated",
        "good": "🔥 Solid work ethic",
        "balanced": "⚡ Quality volume",
        "quick": "🎯 Intense focus",
    },
    "solid": {
        "epic": "🏋️ Great grind",
        "good": "✅ Solid session",
        "balanced": "💯 Perfect balance",
        "quick": "⚙️ Efficient",
    },
    "decent": {
        "epic": "👍 Nice effort",
        "good": "🎯 On point",
        "balanced": "✨ Consistent",
        "quick": "🚀 Quick one",
    },
    "light": {
        "epic": "🌱 Building",
        "good": "📈 Getting going",
        "balanced": "🌟 Getting warmed",
        "quick": "💫 Starter session",
    },
}

_TREND_SUFFIX = {"up": " 🚀", "down": " ⚠️"}


@dataclass(frozen=True)
class TemplateDiff:
    changed: bool
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"changed": self.changed, "reasons": list(self.reasons)}


@dataclass(frozen=True)
class WorkoutComparison:
    trend: str  # up | down | flat
    previous_volume: float
    current_volume: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "trend": self.trend,
            "prevVolume": self.previous_volume,
            "currentVolume": self.current_volume,
        }


@dataclass(frozen=True)
class WorkoutSummary:
    total_volume: float
    completed_sets: int
    volume_per_muscle: dict[str, float]
    radar: dict[str, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalVolume": self.total_volume,
            "completedSets": self.completed_sets,
            "volumePerMuscle": dict(self.volume_per_muscle),
            "radarData": dict(self.radar),
        }


def compute_template_diff(template: dict[str, Any] | None, workout: dict[str, Any] | None) -> TemplateDiff:
    """Describe how a logged workout drifted from the template it started from."""
    template_exercises = iter_exercises(template)
    workout_exercises = iter_exercises(workout)
    template_names = [ex.get("name") for ex in template_exercises]
    workout_names = [ex.get("name") for ex in workout_exercises]

    reasons: list[str] = []
    added = [name for name in workout_names if name not in template_names]
    removed = [name for name in template_names if name not in workout_names]
    if added:
        reasons.append(f"Added: {', '.join(str(n) for n in added)}")
    if removed:
        reasons.append(f"Removed: {', '.join(str(n) for n in removed)}")
    if template_names != workout_names and not added and not removed:
        reasons.append("Order or exercise names changed")

    for template_exercise in template_exercises:
        logged = next(
            (ex for ex in workout_exercises if ex.get("name") == template_exercise.get("name")),
            None,
        )
        if logged is None:
            continue
        planned_sets = len(template_exercise.get("sets") or [])
        logged_sets = len(logged.get("sets") or [])
        if planned_sets != logged_sets:
            reasons.append(f"Sets changed for {logged.get('name')} ({planned_sets} → {logged_sets})")

    return TemplateDiff(changed=bool(reasons), reasons=reasons)


def workout_volume(workout: dict[str, Any]) -> float:
    return sum(
        as_number(s.get("kg")) * as_number(s.get("reps"))
        for exercise in iter_exercises(workout)
        for s in iter_sets(exercise)
        if is_work_set(s)
    )


def compare_workout_to_previous(
    current: dict[str, Any],
    workouts: list[dict[str, Any]],
) -> WorkoutComparison | None:
    """Compare work-set volume with the most recent earlier-dated workout."""
    current_ts = parse_timestamp(current.get("date"))
    if current_ts is None:
        return None

    previous = None
    previous_ts = None
    for workout in workouts or []:
        if not isinstance(workout, dict):
            continue
        ts = parse_timestamp(workout.get("date"))
        if ts is None or ts >= current_ts:
            continue
        if previous_ts is None or ts > previous_ts:
            previous, previous_ts = workout, ts
    if previous is None:
        return None

    current_volume = workout_volume(current)
    previous_volume = workout_volume(previous)
    if current_volume > previous_volume * 1.05:
        trend = "up"
    elif current_volume < previous_volume * 0.95:
        trend = "down"
    else:
        trend = "flat"
    return WorkoutComparison(trend=trend, previous_volume=previous_volume, current_volume=current_volume)


def _volume_tier(volume: float) -> str:
    if volume > 10000:
        return "crushing"
    if volume > 5000:
        return "solid"
    if volume > 2000:
        return "decent"
    return "light"


def _sets_tier(sets: int) -> str:
    if sets > 20:
        return "epic"
    if sets > 12:
        return "good"
    if sets > 6:
        return "balanced"
    return "quick"


def generate_session_feedback(volume: float, sets: int, trend: str = "flat") -> str:
    text = _FEEDBACK_TEXT[_volume_tier(as_number(volume))][_sets_tier(int(as_number(sets)))]
    return text + _TREND_SUFFIX.get(trend, "")


def calculate_muscle_distribution(
    workout: dict[str, Any],
    catalog: list[dict[str, Any]] | None = None,
) -> dict[str, float]:
    """Work-set volume per radar axis, normalized so the largest axis is 1.

    Exercises that map to no known axis spread their volume evenly.
    """
    exercise_map = create_exercise_map(catalog)
    volumes = dict.fromkeys(RADAR_AXES, 0.0)

    for exercise in iter_exercises(workout):
        entry = exercise_map.get(exercise.get("exerciseId")) or {}
        muscles = entry.get("muscles") or map_category_to_muscles(exercise.get("category"))
        exercise_volume = sum(
            as_number(s.get("kg")) * as_number(s.get("reps"))
            for s in iter_sets(exercise)
            if is_work_set(s)
        )
        on_axes = [m for m in muscles if m in volumes]
        if on_axes:
            for muscle in on_axes:
                volumes[muscle] += exercise_volume
        elif muscles:
            share = exercise_volume / len(RADAR_AXES)
            for axis in RADAR_AXES:
                volumes[axis] += share

    peak = max(max(volumes.values()), 1)
    return {axis: volumes[axis] / peak for axis in RADAR_AXES}


def summarize_workout(
    workout: dict[str, Any],
    catalog: list[dict[str, Any]] | None = None,
) -> WorkoutSummary:
    exercise_map = create_exercise_map(catalog)
    total_volume = 0.0
    completed_sets = 0
    per_muscle: dict[str, float] = {}

    for exercise in iter_exercises(workout):
        entry = exercise_map.get(exercise.get("exerciseId")) or {}
        muscles = entry.get("muscles") or [exercise.get("category") or "Other"]
        for s in iter_sets(exercise):
            if not is_work_set(s):
                continue
            volume = as_number(s.get("kg")) * as_number(s.get("reps"))
            total_volume += volume
            completed_sets += 1
            for muscle in muscles:
                per_muscle[muscle] = per_muscle.get(muscle, 0.0) + volume

    return WorkoutSummary(
        total_volume=total_volume,
        completed_sets=completed_sets,
        volume_per_muscle=per_muscle,
        radar=calculate_muscle_distribution(workout, catalog),
    )
