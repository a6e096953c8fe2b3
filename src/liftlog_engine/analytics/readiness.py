"""Readiness from the acute:chronic training-load ratio.

Load is work-set tonnage (kg x reps). Acute is the trailing 7 days, chronic
the trailing 28 days expressed per week. Sessions tagged with recovery risk
tags in the acute window shave a few percent off the score.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..selectors import iter_exercises, iter_sets
from ..sets import is_work_set
from ..utils import DAY, as_number, half_up, parse_timestamp, resolve_now, round2

RISK_TAGS = frozenset({"#sleep-bad", "#stress", "#sick"})

ACUTE_DAYS = 7
CHRONIC_DAYS = 28

_SUGGESTIONS: dict[str, str] = {
    "fatigue": "High recent load: keep intensity controlled today and trim accessory volume.",
    "low": "Load is below baseline: good moment to push quality top sets.",
    "optimal_penalized": (
        "Load is in range, but recovery tags detected - use conservative progression today."
    ),
    "optimal": "Readiness looks good: run planned training and progress one key lift.",
}


@dataclass(frozen=True)
class ReadinessResult:
    acute_load: int
    chronic_load: int
    ratio: float
    status: str  # low | optimal | fatigue
    suggestion: str
    readiness_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "acuteLoad": self.acute_load,
            "chronicLoad": self.chronic_load,
            "ratio": self.ratio,
            "status": self.status,
            "suggestion": self.suggestion,
            "readinessScore": self.readiness_score,
        }


def workout_load(workout: dict[str, Any]) -> float:
    return sum(
        as_number(s.get("kg")) * as_number(s.get("reps"))
        for exercise in iter_exercises(workout)
        for s in iter_sets(exercise)
        if is_work_set(s)
    )


def penalty_rate(risk_tag_sessions: int) -> float:
    if risk_tag_sessions <= 0:
        return 0.0
    if risk_tag_sessions == 1:
        return 0.05
    return 0.1


def base_score(ratio: float) -> float:
    if ratio <= 0:
        return 45
    if ratio < 0.8:
        return max(40, 75 - (0.8 - ratio) * 40)
    if ratio <= 1.2:
        return max(70, 100 - abs(1 - ratio) * 120)
    return max(35, 78 - (ratio - 1.2) * 85)


def readiness_status(ratio: float) -> str:
    if ratio <= 0 or ratio < 0.8:
        return "low"
    if ratio >= 1.3:
        return "fatigue"
    return "optimal"


def _suggestion(status: str, rate: float) -> str:
    if status == "optimal" and rate > 0:
        return _SUGGESTIONS["optimal_penalized"]
    return _SUGGESTIONS[status]


def calculate_readiness(
    workouts: list[dict[str, Any]],
    *,
    now: datetime | None = None,
) -> ReadinessResult:
    reference = resolve_now(now)
    acute_threshold = reference - ACUTE_DAYS * DAY
    chronic_threshold = reference - CHRONIC_DAYS * DAY

    acute_load = 0.0
    chronic_total = 0.0
    risk_tag_sessions = 0

    for workout in workouts or []:
        if not isinstance(workout, dict):
            continue
        ts = parse_timestamp(workout.get("date"))
        if ts is None or ts < chronic_threshold or ts > reference:
            continue

        load = workout_load(workout)
        chronic_total += load
        if ts >= acute_threshold:
            acute_load += load
            if any(tag in RISK_TAGS for tag in workout.get("tags") or []):
                risk_tag_sessions += 1

    chronic_load = chronic_total / 4 if chronic_total > 0 else 0.0
    ratio = acute_load / chronic_load if chronic_load > 0 else 0.0

    rate = penalty_rate(risk_tag_sessions)
    status = readiness_status(ratio)
    return ReadinessResult(
        acute_load=half_up(acute_load),
        chronic_load=half_up(chronic_load),
        ratio=round2(ratio),
        status=status,
        suggestion=_suggestion(status, rate),
        readiness_score=half_up(base_score(ratio) * (1 - rate)),
    )
