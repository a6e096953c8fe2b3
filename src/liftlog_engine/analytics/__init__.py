"""Training analytics: plateau, readiness, landmarks, balance, blocks, optimizer."""

from .block_progress import (
    BlockProgress,
    BlockProgressOptions,
    TrainingBlock,
    WeekPlanEntry,
    calculate_block_progress,
)
from .muscle_balance import MuscleBalance, MuscleBalanceOptions, calculate_muscle_balance
from .plateau import PlateauOptions, PlateauResult, detect_plateau
from .readiness import ReadinessResult, calculate_readiness
from .session_optimizer import OptimizedSession, OptimizerOptions, optimize_session
from .volume_landmarks import VolumeLandmarkOptions, VolumeLandmarks, compute_volume_landmarks

__all__ = [
    "BlockProgress",
    "BlockProgressOptions",
    "MuscleBalance",
    "MuscleBalanceOptions",
    "OptimizedSession",
    "OptimizerOptions",
    "PlateauOptions",
    "PlateauResult",
    "ReadinessResult",
    "TrainingBlock",
    "VolumeLandmarkOptions",
    "VolumeLandmarks",
    "WeekPlanEntry",
    "calculate_block_progress",
    "calculate_muscle_balance",
    "calculate_readiness",
    "compute_volume_landmarks",
    "detect_plateau",
    "optimize_session",
]
