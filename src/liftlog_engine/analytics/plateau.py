"""Plateau detection over per-session e1RM and best-set-volume series."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..history import ExerciseSession, get_exercise_history
from ..sets import is_work_set
from ..utils import as_number, calculate_1rm


@dataclass(frozen=True)
class PlateauOptions:
    # Sessions without a new high before a metric counts as stagnant.
    min_stagnation_exposures: int = 3


@dataclass(frozen=True)
class PlateauResult:
    is_plateau: bool
    exposures_checked: int
    last_improvement_sessions_ago: int
    stagnation_type: str  # both | e1rm | volume
    confidence: str  # low | medium | high

    def to_dict(self) -> dict[str, Any]:
        return {
            "isPlateau": self.is_plateau,
            "exposuresChecked": self.exposures_checked,
            "lastImprovementSessionsAgo": self.last_improvement_sessions_ago,
            "stagnationType": self.stagnation_type,
            "confidence": self.confidence,
        }


_NO_DATA = PlateauResult(
    is_plateau=False,
    exposures_checked=0,
    last_improvement_sessions_ago=0,
    stagnation_type="both",
    confidence="low",
)


def _session_best_e1rm(session: ExerciseSession) -> float:
    return max(
        (calculate_1rm(s.get("kg"), s.get("reps")) for s in session.sets if is_work_set(s)),
        default=0,
    )


def _session_best_set_volume(session: ExerciseSession) -> float:
    return max(
        (as_number(s.get("kg")) * as_number(s.get("reps")) for s in session.sets if is_work_set(s)),
        default=0,
    )


def sessions_since_last_improvement(series: list[float]) -> int:
    """Sessions after the index of the running maximum (0 when the latest is a new high)."""
    if not series:
        return 0
    running_best = float("-inf")
    last_improvement = -1
    for index, value in enumerate(series):
        value = as_number(value)
        if value > running_best:
            running_best = value
            last_improvement = index
    if last_improvement == -1:
        return len(series)
    return max(0, len(series) - 1 - last_improvement)


def _confidence(is_plateau: bool, exposures: int, stale_sessions: int) -> str:
    if exposures < 3:
        return "low"
    if not is_plateau:
        return "medium" if exposures >= 6 else "low"
    if exposures >= 8 and stale_sessions >= 5:
        return "high"
    if exposures >= 5 and stale_sessions >= 3:
        return "medium"
    return "low"


def detect_plateau(
    exercise_id: Any,
    workouts: list[dict[str, Any]],
    options: PlateauOptions | None = None,
) -> PlateauResult:
    """A plateau needs both e1RM and best-set volume to have stalled."""
    options = options or PlateauOptions()
    if exercise_id is None:
        return _NO_DATA

    history = get_exercise_history(exercise_id, workouts)
    if not history:
        return _NO_DATA

    ascending = list(reversed(history))
    e1rm_stale = sessions_since_last_improvement([_session_best_e1rm(s) for s in ascending])
    volume_stale = sessions_since_last_improvement([_session_best_set_volume(s) for s in ascending])

    e1rm_stagnant = e1rm_stale >= options.min_stagnation_exposures
    volume_stagnant = volume_stale >= options.min_stagnation_exposures
    is_plateau = e1rm_stagnant and volume_stagnant

    if e1rm_stagnant and volume_stagnant:
        stagnation_type = "both"
        last_improvement = min(e1rm_stale, volume_stale)
    elif e1rm_stagnant:
        stagnation_type = "e1rm"
        last_improvement = e1rm_stale
    elif volume_stagnant:
        stagnation_type = "volume"
        last_improvement = volume_stale
    elif e1rm_stale >= volume_stale:
        stagnation_type = "e1rm"
        last_improvement = e1rm_stale
    else:
        stagnation_type = "volume"
        last_improvement = volume_stale

    exposures = len(ascending)
    return PlateauResult(
        is_plateau=is_plateau,
        exposures_checked=exposures,
        last_improvement_sessions_ago=last_improvement,
        stagnation_type=stagnation_type,
        confidence=_confidence(is_plateau, exposures, last_improvement),
    )
