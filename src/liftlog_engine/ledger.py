"""Workout ledger: the single entry point for mutating workout history.

Every mutation writes the workout first (store errors propagate, the user's
data must not silently vanish) and then refreshes the records index for the
exercises it touched. Index write failures are absorbed by the index itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import WorkoutNotFoundError
from .history import Records
from .pr_detection import ExercisePRs, apply_pr_flags, detect_prs_in_workout
from .records_index import RecordsIndex
from .selectors import iter_exercises
from .session_summary import (
    TemplateDiff,
    WorkoutComparison,
    WorkoutSummary,
    compare_workout_to_previous,
    compute_template_diff,
    generate_session_feedback,
    summarize_workout,
)
from .sets import normalize_workout_for_storage
from .store import CollectionStore, Collections
from .utils import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinishedWorkout:
    workout: dict[str, Any]
    prs: dict[Any, ExercisePRs] = field(default_factory=dict)
    summary: WorkoutSummary | None = None
    comparison: WorkoutComparison | None = None
    feedback: str = ""
    diff: TemplateDiff | None = None

    @property
    def has_pr(self) -> bool:
        return bool(self.prs)


def exercise_ids(workout: dict[str, Any] | None) -> list[Any]:
    """Distinct non-null exercise ids in workout order."""
    seen: list[Any] = []
    for exercise in iter_exercises(workout):
        exercise_id = exercise.get("exerciseId")
        if exercise_id is not None and exercise_id not in seen:
            seen.append(exercise_id)
    return seen


class WorkoutLedger:
    def __init__(self, store: CollectionStore, index: RecordsIndex | None = None) -> None:
        self._store = store
        self.index = index if index is not None else RecordsIndex(store)
        self._workouts: list[dict[str, Any]] = []
        self._exercises: list[dict[str, Any]] = []

    @property
    def workouts(self) -> list[dict[str, Any]]:
        return list(self._workouts)

    @property
    def exercises(self) -> list[dict[str, Any]]:
        return list(self._exercises)

    async def load(self) -> None:
        self._workouts = await self._store.get_all(Collections.WORKOUTS)
        self._exercises = await self._store.get_all(Collections.EXERCISES)
        await self.index.load()
        logger.info(
            "Loaded %d workouts and %d exercises",
            len(self._workouts),
            len(self._exercises),
        )

    def records_for(self, exercise_id: Any) -> Records:
        return self.index.lookup(exercise_id, self._workouts)

    def _find(self, workout_id: Any) -> int:
        for position, workout in enumerate(self._workouts):
            if workout.get("id") == workout_id:
                return position
        raise WorkoutNotFoundError(workout_id)

    async def finish_workout(
        self,
        workout: dict[str, Any],
        template: dict[str, Any] | None = None,
    ) -> FinishedWorkout:
        """Flag PRs against prior history, persist, then refresh the index."""
        normalized = normalize_workout_for_storage(workout)
        prior = [w for w in self._workouts if w.get("id") != normalized.get("id")]

        if len(prior) == len(self._workouts):
            # The index reflects history before this workout, so hits are prior records.
            detected = detect_prs_in_workout(
                normalized,
                prior,
                get_records=lambda ex_id, history: self.index.lookup(ex_id, history),
            )
        else:
            # Re-finishing a stored id: the index already counts the old copy.
            detected = detect_prs_in_workout(normalized, prior)
        flagged = apply_pr_flags(normalized, detected)
        flagged["hasPR"] = bool(detected)

        await self._store.set(Collections.WORKOUTS, flagged)
        self._workouts = prior + [flagged]
        await self.index.update_many(exercise_ids(flagged), self._workouts)

        summary = summarize_workout(flagged, self._exercises)
        comparison = compare_workout_to_previous(flagged, prior)
        if template is not None:
            diff = compute_template_diff(template, flagged)
        else:
            diff = TemplateDiff(changed=True, reasons=["No template associated for this workout"])

        if detected:
            logger.info(
                "Workout %s set records on %d exercises",
                flagged.get("id"),
                len(detected),
                extra={"liftlog_workout_id": flagged.get("id")},
            )
        return FinishedWorkout(
            workout=flagged,
            prs=detected,
            summary=summary,
            comparison=comparison,
            feedback=generate_session_feedback(
                summary.total_volume,
                summary.completed_sets,
                comparison.trend if comparison is not None else "flat",
            ),
            diff=diff,
        )

    async def edit_workout(self, workout: dict[str, Any]) -> FinishedWorkout:
        """Replace a stored workout, re-deriving its PR flags from scratch."""
        position = self._find(workout.get("id"))
        previous = self._workouts[position]
        normalized = normalize_workout_for_storage(workout)

        edited_ts = parse_timestamp(normalized.get("date"))
        prior = []
        for other in self._workouts:
            if other is previous:
                continue
            other_ts = parse_timestamp(other.get("date"))
            if edited_ts is None or (other_ts is not None and other_ts <= edited_ts):
                prior.append(other)

        detected = detect_prs_in_workout(normalized, prior)
        flagged = apply_pr_flags(normalized, detected)
        flagged["hasPR"] = bool(detected)

        await self._store.set(Collections.WORKOUTS, flagged)
        self._workouts[position] = flagged

        touched = exercise_ids(previous) + [
            ex_id for ex_id in exercise_ids(flagged) if ex_id not in exercise_ids(previous)
        ]
        await self.index.update_many(touched, self._workouts)
        return FinishedWorkout(workout=flagged, prs=detected)

    async def delete_workout(self, workout_id: Any) -> dict[str, Any]:
        position = self._find(workout_id)
        removed = self._workouts[position]
        await self._store.delete(Collections.WORKOUTS, workout_id)
        del self._workouts[position]
        await self.index.update_many(exercise_ids(removed), self._workouts)
        return removed

    async def import_history(
        self,
        workouts: list[dict[str, Any]],
        exercises: list[dict[str, Any]] | None = None,
    ) -> int:
        """Replace history wholesale and rebuild the index from it."""
        await self.index.clear()

        normalized = [normalize_workout_for_storage(w) for w in workouts or [] if isinstance(w, dict)]
        await self._store.clear(Collections.WORKOUTS)
        await self._store.set_many(Collections.WORKOUTS, normalized)
        self._workouts = normalized

        if exercises is not None:
            catalog = [e for e in exercises if isinstance(e, dict)]
            await self._store.clear(Collections.EXERCISES)
            await self._store.set_many(Collections.EXERCISES, catalog)
            self._exercises = catalog

        rebuilt = await self.index.rebuild_all(self._workouts, self._exercises)
        logger.info("Imported %d workouts", len(normalized))
        return rebuilt

    async def rebuild_index(self) -> int:
        return await self.index.rebuild_all(self._workouts, self._exercises)
