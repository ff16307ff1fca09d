"""Type definitions for Earned Access data structures.

TypedDict is used for the persisted ledger layout, whose keys are fixed at
design time. Runtime values (access states, grants, results) are frozen
dataclasses defined next to the engine that produces them.

IMPORTANT: This file must NOT import from coordinator.py or any file that
imports Home Assistant. Only typing machinery belongs here.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Snapshot validation (missing keys,
wrong types) is done in UsageLedger.from_snapshot() and
WorkoutHistory.from_snapshot().
"""

from typing import NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

DateKey = str  # Local calendar date "2026-01-18"
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"


# =============================================================================
# Persisted Ledger Layout
# =============================================================================


class UsageDayData(TypedDict):
    """One persisted UsageDay record.

    The daily cap is not stored; it is derived from plan_tier on load.
    """

    date_key: DateKey
    earned_seconds: int
    consumed_seconds: int
    plan_tier: str


class WorkoutRecordData(TypedDict):
    """One completed workout."""

    workout_type: str
    units_completed: int
    earned_seconds: int
    completed_at: ISODatetime
    date_key: DateKey


class WorkoutHistorySnapshot(TypedDict):
    """Persisted workout history and streak counters."""

    records: list[WorkoutRecordData]  # Newest first, bounded
    current_streak: int
    best_streak: int
    total_workouts: int
    total_earned_seconds: int
    last_workout_date: DateKey | None


class UsageLedgerSnapshot(TypedDict):
    """Full persisted ledger written by a PersistenceAdapter."""

    schema_version: int
    plan_tier: str
    current: UsageDayData | None
    history: list[UsageDayData]  # Newest first, at most 30 entries
    utc_offset_minutes: NotRequired[int | None]
    timezone_changed_at: NotRequired[ISODatetime | None]
    workouts: NotRequired[WorkoutHistorySnapshot]
