"""Workout History - Completed workouts and the daily workout streak.

Every EarnedGrant is recorded as a WorkoutRecord:

- Records are kept newest first and bounded to WORKOUT_HISTORY_MAX_RECORDS.
  Totals (workouts, earned seconds) count every recorded workout, including
  those already dropped from the bounded list.
- The streak counts consecutive local calendar days with at least one
  workout. Another workout on the same day leaves it unchanged, the next day
  extends it and a gap of more than one day restarts it at 1. The best streak
  is kept.
- A streak is active while the last workout day is today or yesterday;
  otherwise the reported streak is 0 until the next workout restarts it.

Dates are read in the configured time zone, the same way UsageLedger reads
them.

ARCHITECTURE: Stateful but pure (no clock reads, no I/O, no Home Assistant).
Persistence is the caller's job via to_snapshot()/from_snapshot().
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_as_utc_iso, dt_date_key, dt_parse_date, dt_to_zone
from .reward_engine import RewardEngine

if TYPE_CHECKING:
    from datetime import datetime, tzinfo

    from ..type_defs import WorkoutHistorySnapshot, WorkoutRecordData
    from .access_engine import EarnedGrant


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class WorkoutRecord:
    """One completed workout."""

    workout_type: str
    units_completed: int
    earned_seconds: int
    completed_at: str
    date_key: str

    @property
    def description(self) -> str:
        """Return the reward summary, e.g. "20 reps = 10 min unlock"."""
        return RewardEngine.reward_description(self.workout_type, self.units_completed)

    def to_dict(self) -> WorkoutRecordData:
        """Return the persisted form."""
        return {
            const.DATA_RECORD_WORKOUT_TYPE: self.workout_type,
            const.DATA_RECORD_UNITS_COMPLETED: self.units_completed,
            const.DATA_RECORD_EARNED_SECONDS: self.earned_seconds,
            const.DATA_RECORD_COMPLETED_AT: self.completed_at,
            const.DATA_RECORD_DATE_KEY: self.date_key,
        }  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, data: WorkoutRecordData | dict[str, Any]) -> WorkoutRecord:
        """Build a WorkoutRecord from its persisted form.

        Raises:
            ValueError: Missing keys, unknown workout type or bad values
        """
        try:
            record = cls(
                workout_type=str(data[const.DATA_RECORD_WORKOUT_TYPE]),
                units_completed=int(data[const.DATA_RECORD_UNITS_COMPLETED]),
                earned_seconds=int(data[const.DATA_RECORD_EARNED_SECONDS]),
                completed_at=str(data[const.DATA_RECORD_COMPLETED_AT]),
                date_key=str(data[const.DATA_RECORD_DATE_KEY]),
            )
        except (KeyError, TypeError, ValueError) as err:
            raise ValueError(f"Malformed workout record: {data!r}") from err

        if not RewardEngine.is_known_type(record.workout_type):
            raise ValueError(f"Unknown workout type in record: {record.workout_type}")
        if dt_parse_date(record.date_key) is None:
            raise ValueError(f"Malformed workout date key: {record.date_key!r}")
        if record.units_completed < 0 or record.earned_seconds < 0:
            raise ValueError(f"Negative counters in workout record {record.date_key}")
        return record


@dataclass(frozen=True)
class WorkoutStats:
    """Read-only view of the workout history at a given instant.

    Attributes:
        current_streak: Active streak in days (0 once it lapsed)
        best_streak: Longest streak ever reached
        total_workouts: Workouts recorded since the history started
        total_earned_seconds: Seconds earned by those workouts
        last_workout_date: Date key of the latest workout, or None
        today_completed: True when a workout was recorded today
        most_popular_workout: Most frequent type in the kept records
        recent: Latest records, newest first
    """

    current_streak: int
    best_streak: int
    total_workouts: int
    total_earned_seconds: int
    last_workout_date: str | None
    today_completed: bool
    most_popular_workout: str | None
    recent: tuple[WorkoutRecord, ...]


# =============================================================================
# WORKOUT HISTORY
# =============================================================================


class WorkoutHistory:
    """Bounded workout log with streak tracking."""

    def __init__(self, time_zone: tzinfo | None = None) -> None:
        """Initialize an empty history.

        Args:
            time_zone: Zone dates are read in; None keeps the offset of each
                instant (naive instants use the default timezone)
        """
        self._time_zone = time_zone
        self._records: list[WorkoutRecord] = []
        self._current_streak = 0
        self._best_streak = 0
        self._total_workouts = 0
        self._total_earned_seconds = 0
        self._last_workout_date: str | None = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def records(self) -> list[WorkoutRecord]:
        """Return kept records, newest first."""
        return list(self._records)

    @property
    def best_streak(self) -> int:
        """Return the longest streak ever reached."""
        return self._best_streak

    @property
    def total_workouts(self) -> int:
        """Return the number of recorded workouts."""
        return self._total_workouts

    @property
    def last_workout_date(self) -> str | None:
        """Return the date key of the latest workout."""
        return self._last_workout_date

    # -------------------------------------------------------------------------
    # Streak calculation
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_streak(
        current_streak: int,
        previous_date_key: str | None,
        current_date_key: str,
    ) -> int:
        """Calculate the streak after a workout on current_date_key.

        Must be called BEFORE last_workout_date is updated, using the previous
        value to detect a gap.

        Returns:
            1 for a first workout or a broken streak, current_streak + 1 on
            the next day, current_streak unchanged on the same day
        """
        if not previous_date_key:
            return 1

        previous = dt_parse_date(previous_date_key)
        current = dt_parse_date(current_date_key)
        if previous is None or current is None:
            return 1

        days_diff = (current - previous).days
        if days_diff <= 0:
            # Same day, or the clock moved back across midnight
            return max(current_streak, 1)
        if days_diff == 1:
            return current_streak + 1
        return 1

    def current_streak(self, now: datetime) -> int:
        """Return the streak still alive at `now` (0 once a day was missed)."""
        if self._last_workout_date is None:
            return 0
        last = dt_parse_date(self._last_workout_date)
        today = dt_parse_date(self._date_key(now))
        if last is None or today is None or (today - last).days > 1:
            return 0
        return self._current_streak

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _date_key(self, now: datetime) -> str:
        return dt_date_key(dt_to_zone(now, self._time_zone))

    def record(self, grant: EarnedGrant) -> WorkoutRecord:
        """Record a completed workout and update the streak."""
        date_key = self._date_key(grant.created_at)
        record = WorkoutRecord(
            workout_type=grant.workout_type,
            units_completed=grant.units_completed,
            earned_seconds=grant.earned_seconds,
            completed_at=dt_as_utc_iso(grant.created_at) or "",
            date_key=date_key,
        )

        self._current_streak = self.calculate_streak(
            self._current_streak, self._last_workout_date, date_key
        )
        self._best_streak = max(self._best_streak, self._current_streak)
        if self._last_workout_date is None or date_key > self._last_workout_date:
            self._last_workout_date = date_key
        self._total_workouts += 1
        self._total_earned_seconds += record.earned_seconds

        self._records.insert(0, record)
        del self._records[const.WORKOUT_HISTORY_MAX_RECORDS :]

        const.LOGGER.debug(
            "WorkoutHistory.record: %s x %s on %s (streak=%s, best=%s)",
            record.units_completed,
            record.workout_type,
            date_key,
            self._current_streak,
            self._best_streak,
        )
        return record

    # -------------------------------------------------------------------------
    # Queries (pure)
    # -------------------------------------------------------------------------

    def workouts_on(self, now: datetime) -> list[WorkoutRecord]:
        """Return kept records on the date of `now`, newest first."""
        date_key = self._date_key(now)
        return [record for record in self._records if record.date_key == date_key]

    def most_popular_workout(self) -> str | None:
        """Return the most frequent workout type among the kept records."""
        if not self._records:
            return None
        counts = Counter(record.workout_type for record in self._records)
        return counts.most_common(1)[0][0]

    def stats(self, now: datetime, limit: int = const.WORKOUT_RECENT_LIMIT) -> WorkoutStats:
        """Return the history view at `now`."""
        return WorkoutStats(
            current_streak=self.current_streak(now),
            best_streak=self._best_streak,
            total_workouts=self._total_workouts,
            total_earned_seconds=self._total_earned_seconds,
            last_workout_date=self._last_workout_date,
            today_completed=self._last_workout_date == self._date_key(now),
            most_popular_workout=self.most_popular_workout(),
            recent=tuple(self._records[:limit]),
        )

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def to_snapshot(self) -> WorkoutHistorySnapshot:
        """Return the JSON-safe persisted layout."""
        return {
            const.DATA_WORKOUT_RECORDS: [record.to_dict() for record in self._records],
            const.DATA_WORKOUT_CURRENT_STREAK: self._current_streak,
            const.DATA_WORKOUT_BEST_STREAK: self._best_streak,
            const.DATA_WORKOUT_TOTAL_WORKOUTS: self._total_workouts,
            const.DATA_WORKOUT_TOTAL_EARNED_SECONDS: self._total_earned_seconds,
            const.DATA_WORKOUT_LAST_DATE: self._last_workout_date,
        }  # type: ignore[return-value]

    @classmethod
    def from_snapshot(
        cls,
        snapshot: WorkoutHistorySnapshot | dict[str, Any],
        time_zone: tzinfo | None = None,
    ) -> WorkoutHistory:
        """Rebuild a history from its persisted layout.

        Raises:
            ValueError: The snapshot is malformed
        """
        if not isinstance(snapshot, dict):
            raise ValueError(f"Workout snapshot must be a dict, got {type(snapshot)}")

        records = snapshot.get(const.DATA_WORKOUT_RECORDS) or []
        if not isinstance(records, list):
            raise ValueError("Workout records must be a list")

        history = cls(time_zone=time_zone)
        history._records = [WorkoutRecord.from_dict(entry) for entry in records][
            : const.WORKOUT_HISTORY_MAX_RECORDS
        ]
        try:
            history._current_streak = int(
                snapshot.get(const.DATA_WORKOUT_CURRENT_STREAK) or 0
            )
            history._best_streak = int(snapshot.get(const.DATA_WORKOUT_BEST_STREAK) or 0)
            history._total_workouts = int(
                snapshot.get(const.DATA_WORKOUT_TOTAL_WORKOUTS) or len(history._records)
            )
            history._total_earned_seconds = int(
                snapshot.get(const.DATA_WORKOUT_TOTAL_EARNED_SECONDS) or 0
            )
        except (TypeError, ValueError) as err:
            raise ValueError(f"Malformed workout counters: {snapshot!r}") from err

        last_date = snapshot.get(const.DATA_WORKOUT_LAST_DATE)
        if last_date is not None and dt_parse_date(last_date) is None:
            raise ValueError(f"Malformed last workout date: {last_date!r}")
        history._last_workout_date = last_date
        return history
