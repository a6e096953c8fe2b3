"""Antagonist balance (push/pull, chest/back, quads/hamstrings) over two scopes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..selectors import create_exercise_map, iter_exercises, iter_sets, map_category_to_muscles
from ..sets import is_work_set
from ..utils import DAY, as_number, half_up, parse_timestamp, resolve_now

PAIR_KEYS = ("pushPull", "chestBack", "quadHam")

# (pair, side) -> keywords matched against muscles (exact) and name/category (substring).
# Sides of one pair are independent: an exercise may feed both.
_SIDE_RULES: dict[str, tuple[tuple[str, tuple[str, ...]], tuple[str, tuple[str, ...]]]] = {
    "pushPull": (
        ("Push", ("chest", "shoulders", "triceps", "push")),
        ("Pull", ("back", "biceps", "pull", "rear")),
    ),
    "chestBack": (
        ("Chest", ("chest", "pec")),
        ("Back", ("back", "lat")),
    ),
    "quadHam": (
        ("Quads", ("quad", "squat", "leg press", "lunge", "split squat", "extension", "hack")),
        ("Hamstrings", ("ham", "rdl", "deadlift", "curl", "good morning", "hip thrust", "glute")),
    ),
}


@dataclass(frozen=True)
class MuscleBalanceOptions:
    week_days: int = 7
    fallback_block_days: int = 42
    now: datetime | None = None


@dataclass(frozen=True)
class PairBalance:
    side_a: str
    side_b: str
    side_a_value: float
    side_b_value: float
    ratio: float
    status: str  # balanced | slight | imbalanced

    def to_dict(self) -> dict[str, Any]:
        return {
            "sideA": self.side_a,
            "sideB": self.side_b,
            "sideAValue": self.side_a_value,
            "sideBValue": self.side_b_value,
            "ratio": self.ratio,
            "status": self.status,
        }


@dataclass(frozen=True)
class ScopeBalance:
    label: str
    push_pull: PairBalance
    chest_back: PairBalance
    quad_ham: PairBalance
    score: int

    @property
    def pairs(self) -> tuple[PairBalance, PairBalance, PairBalance]:
        return (self.push_pull, self.chest_back, self.quad_ham)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "pushPull": self.push_pull.to_dict(),
            "chestBack": self.chest_back.to_dict(),
            "quadHam": self.quad_ham.to_dict(),
            "score": self.score,
        }


@dataclass(frozen=True)
class MuscleBalance:
    week: ScopeBalance
    block: ScopeBalance
    block_mode: str  # blockRef | rolling

    def to_dict(self) -> dict[str, Any]:
        return {
            "week": self.week.to_dict(),
            "block": self.block.to_dict(),
            "blockMode": self.block_mode,
        }


def _lower(value: Any) -> str:
    return str(value).lower() if value is not None else ""


def infer_muscles(exercise: dict[str, Any], exercise_map: dict[Any, dict[str, Any]]) -> list[str]:
    exercise_id = exercise.get("exerciseId")
    entry = exercise_map.get(exercise_id) if exercise_id is not None else None
    from_catalog = entry.get("muscles") if isinstance(entry, dict) else None
    from_workout = exercise.get("targetMuscles")

    if isinstance(from_catalog, list) and from_catalog:
        muscles = from_catalog
    elif isinstance(from_workout, list) and from_workout:
        muscles = from_workout
    else:
        muscles = map_category_to_muscles(exercise.get("category"))
    return [_lower(m) for m in muscles]


def classify_contributions(
    exercise: dict[str, Any],
    work_sets: float,
    muscles: list[str],
) -> dict[str, tuple[float, float]]:
    """Per pair, the (sideA, sideB) share of ``work_sets`` this exercise contributes."""
    name = _lower(exercise.get("name"))
    category = _lower(exercise.get("category"))

    def matches(terms: tuple[str, ...]) -> bool:
        return any(term in muscles or term in name or term in category for term in terms)

    contributions: dict[str, tuple[float, float]] = {}
    for pair_key, ((_, terms_a), (_, terms_b)) in _SIDE_RULES.items():
        hit_a = matches(terms_a)
        hit_b = matches(terms_b)
        if pair_key == "quadHam" and hit_a and hit_b:
            # Hinge/squat hybrids count half to each side.
            contributions[pair_key] = (work_sets * 0.5, work_sets * 0.5)
        else:
            contributions[pair_key] = (work_sets if hit_a else 0.0, work_sets if hit_b else 0.0)
    return contributions


def _round1(value: float) -> float:
    return half_up(value * 10) / 10


def finalize_pair(side_a: str, side_b: str, a: float, b: float) -> PairBalance:
    a = as_number(a)
    b = as_number(b)
    total = a + b
    diff_share = abs(a - b) / total if total > 0 else 0.0
    if diff_share > 0.3:
        status = "imbalanced"
    elif diff_share > 0.15:
        status = "slight"
    else:
        status = "balanced"

    if b > 0:
        ratio = round(a / b, 2)
    elif a > 0:
        ratio = float("inf")
    else:
        ratio = 1.0

    return PairBalance(
        side_a=side_a,
        side_b=side_b,
        side_a_value=_round1(a),
        side_b_value=_round1(b),
        ratio=ratio,
        status=status,
    )


def _pair_score(pair: PairBalance) -> float:
    a, b = pair.side_a_value, pair.side_b_value
    if a <= 0 and b <= 0:
        return 1.0
    if a <= 0 or b <= 0:
        return 0.2
    return min(a, b) / max(a, b)


class _ScopeAccumulator:
    def __init__(self, label: str) -> None:
        self.label = label
        self.totals: dict[str, list[float]] = {key: [0.0, 0.0] for key in PAIR_KEYS}

    def add(self, contributions: dict[str, tuple[float, float]]) -> None:
        for key, (a, b) in contributions.items():
            self.totals[key][0] += a
            self.totals[key][1] += b

    def finalize(self) -> ScopeBalance:
        pairs = {
            key: finalize_pair(_SIDE_RULES[key][0][0], _SIDE_RULES[key][1][0], *self.totals[key])
            for key in PAIR_KEYS
        }
        scores = [_pair_score(p) for p in pairs.values()]
        return ScopeBalance(
            label=self.label,
            push_pull=pairs["pushPull"],
            chest_back=pairs["chestBack"],
            quad_ham=pairs["quadHam"],
            score=half_up(sum(scores) / len(scores) * 100),
        )


def _latest_block_id(workouts: list[dict[str, Any]]) -> Any:
    latest_id = None
    latest_ts = None
    for workout in workouts:
        block_ref = workout.get("blockRef")
        block_id = block_ref.get("blockId") if isinstance(block_ref, dict) else None
        ts = parse_timestamp(workout.get("date"))
        if ts is None or not block_id:
            continue
        if latest_ts is None or ts > latest_ts:
            latest_ts = ts
            latest_id = block_id
    return latest_id


def calculate_muscle_balance(
    workouts: list[dict[str, Any]],
    exercises_db: list[dict[str, Any]] | None = None,
    options: MuscleBalanceOptions | None = None,
) -> MuscleBalance:
    options = options or MuscleBalanceOptions()
    reference = resolve_now(options.now)
    week_threshold = reference - options.week_days * DAY
    rolling_threshold = reference - options.fallback_block_days * DAY
    exercise_map = create_exercise_map(exercises_db)
    workouts = [w for w in workouts or [] if isinstance(w, dict)]

    block_id = _latest_block_id(workouts)
    week_scope = _ScopeAccumulator("This week")
    block_scope = _ScopeAccumulator("Current block" if block_id else "Last 6 weeks")

    for workout in workouts:
        ts = parse_timestamp(workout.get("date"))
        if ts is None or ts > reference:
            continue

        in_week = ts >= week_threshold
        if block_id:
            block_ref = workout.get("blockRef")
            in_block = isinstance(block_ref, dict) and block_ref.get("blockId") == block_id
        else:
            in_block = ts >= rolling_threshold
        if not in_week and not in_block:
            continue

        for exercise in iter_exercises(workout):
            work_sets = sum(1 for s in iter_sets(exercise) if is_work_set(s))
            if work_sets == 0:
                continue
            contributions = classify_contributions(
                exercise, work_sets, infer_muscles(exercise, exercise_map)
            )
            if in_week:
                week_scope.add(contributions)
            if in_block:
                block_scope.add(contributions)

    return MuscleBalance(
        week=week_scope.finalize(),
        block=block_scope.finalize(),
        block_mode="blockRef" if block_id else "rolling",
    )
