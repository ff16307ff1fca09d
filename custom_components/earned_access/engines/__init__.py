"""Engine modules for Earned Access.

Contains the pure computation engines:
- reward_engine: Work units to earned unlock seconds
- usage_ledger: Per-day earned/consumed seconds, caps and rollover
- access_engine: Access state machine and derived target sets
- workout_history: Completed workouts and the daily workout streak
- errors / results: Error taxonomy and explicit command results
"""

# Use relative imports within package to avoid mypy module resolution issues
from .access_engine import (
    AccessController,
    AccessState,
    EarnedGrant,
    Earning,
    Expired,
    Locked,
    Unlocked,
    WorkSession,
)
from .errors import (
    EarnedAccessError,
    InsufficientQuotaError,
    InvalidTransitionError,
    PersistenceFailureError,
    UnknownWorkoutTypeError,
)
from .results import CommandResult
from .reward_engine import RewardEngine
from .usage_ledger import TodayUsage, UsageDay, UsageLedger
from .workout_history import WorkoutHistory, WorkoutRecord, WorkoutStats

__all__ = [
    "AccessController",
    "AccessState",
    "CommandResult",
    "EarnedAccessError",
    "EarnedGrant",
    "Earning",
    "Expired",
    "InsufficientQuotaError",
    "InvalidTransitionError",
    "Locked",
    "PersistenceFailureError",
    "RewardEngine",
    "TodayUsage",
    "UnknownWorkoutTypeError",
    "Unlocked",
    "UsageDay",
    "UsageLedger",
    "WorkSession",
    "WorkoutHistory",
    "WorkoutRecord",
    "WorkoutStats",
]
