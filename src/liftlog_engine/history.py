"""Exercise history projection and personal records.

Projects one exercise's chronological session history out of the full workout
list, and folds it into the best-performance ``Records`` the records index
caches. Also hosts the per-exercise helpers the active-session screen uses
(previous sets, next-weight suggestion, trend).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .selectors import iter_exercises, iter_sets, workout_sort_key
from .sets import is_warmup_set
from .utils import DAY, as_number, calculate_1rm, parse_timestamp, resolve_now

RECORD_TYPES: tuple[str, ...] = ("best1RM", "bestSetVolume", "heaviestWeight")


@dataclass(frozen=True)
class ExerciseSession:
    """One workout's worth of completed sets for a single exercise."""

    date: Any
    workout_name: str | None
    sets: list[dict[str, Any]] = field(default_factory=list)
    max_1rm: float = 0


@dataclass(frozen=True)
class Records:
    """Best historical performance for one exercise."""

    best_1rm: float = 0
    best_1rm_date: Any = None
    max_weight: float = 0
    max_weight_date: Any = None
    max_reps: float = 0
    max_reps_date: Any = None
    best_set_volume: float = 0
    best_set_volume_date: Any = None

    @property
    def has_history(self) -> bool:
        return bool(self.best_1rm or self.max_weight or self.max_reps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "best1RM": self.best_1rm,
            "best1RMDate": self.best_1rm_date,
            "maxWeight": self.max_weight,
            "maxWeightDate": self.max_weight_date,
            "maxReps": self.max_reps,
            "maxRepsDate": self.max_reps_date,
            "bestSetVolume": self.best_set_volume,
            "bestSetVolumeDate": self.best_set_volume_date,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Records:
        if not isinstance(data, dict):
            return cls()
        return cls(
            best_1rm=as_number(data.get("best1RM")),
            best_1rm_date=data.get("best1RMDate"),
            max_weight=as_number(data.get("maxWeight", data.get("heaviestWeight"))),
            max_weight_date=data.get("maxWeightDate", data.get("heaviestWeightDate")),
            max_reps=as_number(data.get("maxReps")),
            max_reps_date=data.get("maxRepsDate"),
            best_set_volume=as_number(data.get("bestSetVolume")),
            best_set_volume_date=data.get("bestSetVolumeDate"),
        )


def _find_exercise(workout: dict[str, Any], exercise_id: Any) -> dict[str, Any] | None:
    for exercise in iter_exercises(workout):
        if exercise.get("exerciseId") == exercise_id:
            return exercise
    return None


def get_exercise_history(exercise_id: Any, workouts: list[dict[str, Any]]) -> list[ExerciseSession]:
    """Per-session history for one exercise, newest first.

    ``max_1rm`` covers every completed set, warmups included: the estimate
    reflects best performance regardless of tagging. Sessions without a
    completed set for the exercise are dropped.
    """
    if exercise_id is None:
        return []

    relevant = [
        w for w in workouts or []
        if isinstance(w, dict) and _find_exercise(w, exercise_id) is not None
    ]
    relevant.sort(key=workout_sort_key, reverse=True)

    history: list[ExerciseSession] = []
    for workout in relevant:
        exercise = _find_exercise(workout, exercise_id)
        completed = [dict(s) for s in iter_sets(exercise) if s.get("completed")]
        if not completed:
            continue
        max_1rm = max((calculate_1rm(s.get("kg"), s.get("reps")) for s in completed), default=0)
        history.append(
            ExerciseSession(
                date=workout.get("date"),
                workout_name=workout.get("name"),
                sets=completed,
                max_1rm=max(0, max_1rm),
            )
        )
    return history


def records_from_history(history: list[ExerciseSession]) -> Records:
    """Fold a (newest-first) history into Records.

    Scans oldest to newest so each record date is the first session that
    reached the maximum. Weight, reps and set volume ignore warmups.
    """
    best_1rm, best_1rm_date = 0.0, None
    max_weight, max_weight_date = 0.0, None
    max_reps, max_reps_date = 0.0, None
    best_volume, best_volume_date = 0.0, None

    for session in reversed(history):
        if session.max_1rm > best_1rm:
            best_1rm, best_1rm_date = session.max_1rm, session.date
        for set_data in session.sets:
            if is_warmup_set(set_data):
                continue
            kg = as_number(set_data.get("kg"))
            reps = as_number(set_data.get("reps"))
            if kg > max_weight:
                max_weight, max_weight_date = kg, session.date
            if reps > max_reps:
                max_reps, max_reps_date = reps, session.date
            volume = kg * reps
            if volume > best_volume:
                best_volume, best_volume_date = volume, session.date

    return Records(
        best_1rm=best_1rm,
        best_1rm_date=best_1rm_date,
        max_weight=max_weight,
        max_weight_date=max_weight_date,
        max_reps=max_reps,
        max_reps_date=max_reps_date,
        best_set_volume=best_volume,
        best_set_volume_date=best_volume_date,
    )


def get_exercise_records(exercise_id: Any, workouts: list[dict[str, Any]]) -> Records:
    """Slow path: O(sessions) recompute of an exercise's records."""
    return records_from_history(get_exercise_history(exercise_id, workouts))


def check_set_records(kg: Any, reps: Any, records: Records | None) -> dict[str, bool]:
    """Live record check for a single set against known records."""
    weight = as_number(kg)
    rep_count = as_number(reps)
    if records is None or weight == 0 or rep_count == 0:
        return {"isBest1RM": False, "isBestSetVolume": False, "isHeaviestWeight": False}
    return {
        "isBest1RM": calculate_1rm(weight, rep_count) > records.best_1rm,
        "isBestSetVolume": weight * rep_count > records.best_set_volume,
        "isHeaviestWeight": weight > records.max_weight,
    }


def get_last_completed_sets(exercise_id: Any, workouts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Completed work sets from the most recent session that has any."""
    if exercise_id is None:
        return []
    relevant = [
        w for w in workouts or []
        if isinstance(w, dict) and _find_exercise(w, exercise_id) is not None
    ]
    relevant.sort(key=workout_sort_key, reverse=True)
    for workout in relevant:
        exercise = _find_exercise(workout, exercise_id)
        completed = [s for s in iter_sets(exercise) if s.get("completed") and not is_warmup_set(s)]
        if completed:
            return completed
    return []


def _snapshot_sets(snapshot: Any, exercise_id: Any) -> list[dict[str, float] | None]:
    if not isinstance(snapshot, dict):
        return []
    for exercise in snapshot.get("exercises") or []:
        if not isinstance(exercise, dict) or exercise.get("exerciseId") != exercise_id:
            continue
        aligned = [
            {"kg": as_number(s.get("kg")), "reps": as_number(s.get("reps"))}
            if isinstance(s, dict) and (s.get("kg") is not None or s.get("reps") is not None)
            else None
            for s in exercise.get("sets") or []
        ]
        if any(entry is not None for entry in aligned):
            return aligned
    return []


def get_previous_sets(
    exercise_id: Any,
    workouts: list[dict[str, Any]],
    *,
    exclude_start_time: Any = None,
    template_snapshot: dict[str, Any] | None = None,
) -> list[dict[str, float] | None]:
    """Set-aligned previous performance for an exercise.

    Prefers the template's last-workout snapshot (so "Pull A" and "Pull B"
    keep separate memories), then falls back to global history. Positions
    without a completed work set are None.
    """
    if exercise_id is None:
        return []

    from_template = _snapshot_sets(template_snapshot, exercise_id)
    if from_template:
        return from_template

    relevant = [
        w for w in workouts or []
        if isinstance(w, dict)
        and not (exclude_start_time and w.get("startTime") == exclude_start_time)
        and _find_exercise(w, exercise_id) is not None
    ]
    relevant.sort(key=workout_sort_key, reverse=True)
    for workout in relevant:
        exercise = _find_exercise(workout, exercise_id)
        aligned = [
            {"kg": as_number(s.get("kg")), "reps": as_number(s.get("reps"))}
            if s.get("completed") and not is_warmup_set(s)
            else None
            for s in iter_sets(exercise)
        ]
        if any(entry is not None for entry in aligned):
            return aligned
    return []


def build_last_workout_snapshot(completed_workout: dict[str, Any] | None) -> dict[str, Any] | None:
    """Snapshot of completed work sets stored on the template for next time."""
    if not isinstance(completed_workout, dict) or not completed_workout.get("exercises"):
        return None
    exercises = []
    for exercise in iter_exercises(completed_workout):
        sets = [
            {"kg": as_number(s.get("kg")), "reps": as_number(s.get("reps"))}
            for s in iter_sets(exercise)
            if s.get("completed") and not is_warmup_set(s)
        ]
        if sets:
            exercises.append({
                "exerciseId": exercise.get("exerciseId"),
                "name": exercise.get("name"),
                "sets": sets,
            })
    return {"date": completed_workout.get("date"), "exercises": exercises}


def suggest_next_weight(sets: list[dict[str, Any]] | None) -> dict[str, float] | None:
    """Suggest the next set when the last sets form an ascending ramp."""
    valid = [
        {"kg": as_number(s.get("kg")), "reps": as_number(s.get("reps"))}
        for s in sets or []
        if isinstance(s, dict) and not is_warmup_set(s)
    ]
    if len(valid) < 2:
        return None
    if any(valid[i]["kg"] <= valid[i - 1]["kg"] for i in range(1, len(valid))):
        return None

    last, previous = valid[-1], valid[-2]
    increment = max(last["kg"] - previous["kg"], 2.5)
    return {"suggestedKg": last["kg"] + increment, "suggestedReps": last["reps"]}


def _sessions_volume(sessions: list[ExerciseSession]) -> float:
    return sum(
        as_number(s.get("kg")) * as_number(s.get("reps"))
        for session in sessions
        for s in session.sets
    )


def get_exercise_trend(
    exercise_id: Any,
    workouts: list[dict[str, Any]],
    *,
    now: datetime | None = None,
) -> str:
    """'up' / 'down' / 'flat' comparing the last 4 weeks against older history."""
    history = get_exercise_history(exercise_id, workouts)
    if len(history) < 2:
        return "flat"

    cutoff = resolve_now(now) - 28 * DAY
    recent, older = [], []
    for session in history:
        ts = parse_timestamp(session.date)
        if ts is not None and ts >= cutoff:
            recent.append(session)
        else:
            older.append(session)
    if not recent:
        return "flat"

    def score(sessions: list[ExerciseSession]) -> float:
        best = max((s.max_1rm for s in sessions), default=0)
        return best * 0.7 + (100 if _sessions_volume(sessions) > 0 else 0) * 0.3

    recent_score, older_score = score(recent), score(older)
    if recent_score > older_score * 1.05:
        return "up"
    if recent_score < older_score * 0.95:
        return "down"
    return "flat"
