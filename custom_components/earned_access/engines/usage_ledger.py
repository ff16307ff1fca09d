"""Usage Ledger - Per-day earned/consumed seconds with a plan-tier cap.

The ledger keeps exactly one UsageDay per local calendar date:

- The current day is created lazily on the first write for a date key.
- When `now` falls on a different date than the current day, the current
  day is archived into history (newest first, 30 days retained) and a fresh
  day is started. This rollover runs before any mutation that uses `now`.
- Queries (`remaining`, `today_usage`) are pure. A `now` on an archived date
  reads its history entry; any other date is evaluated against a fresh,
  unstored day.

Quota rule: remaining = max(0, min(cap, earned) - consumed). A cap of -1
(advanced tier) is unlimited and remaining = earned - consumed.

Dates are read in the ledger time zone: aware instants are converted to it,
whatever offset they carry. Without a configured zone the offset carried by
each instant is used as is (device time).

The ledger remembers the UTC offset of the last instant it saw. When the
offset changes (travel, DST) a marker is stored and logged; rollover still
follows the new local date.

ARCHITECTURE: Stateful but pure (no clock reads, no I/O, no Home Assistant).
Persistence is the caller's job via to_snapshot()/from_snapshot().
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import (
    dt_as_utc_iso,
    dt_date_key,
    dt_days_before,
    dt_local_date,
    dt_parse_date,
    dt_to_zone,
    dt_utc_offset_minutes,
)
from ..utils.math_utils import calculate_ratio
from .errors import InsufficientQuotaError
from .results import CommandResult

if TYPE_CHECKING:
    from datetime import datetime, tzinfo

    from ..type_defs import UsageDayData, UsageLedgerSnapshot


# =============================================================================
# PLAN TIER HELPERS
# =============================================================================


def normalize_plan_tier(plan_tier: str | None) -> str:
    """Return a known plan tier, falling back to the default for unknown values."""
    if isinstance(plan_tier, str) and plan_tier.strip().lower() in const.PLAN_TIERS:
        return plan_tier.strip().lower()
    if plan_tier is not None:
        const.LOGGER.warning(
            "UsageLedger: Unknown plan tier '%s', using '%s'",
            plan_tier,
            const.DEFAULT_PLAN_TIER,
        )
    return const.DEFAULT_PLAN_TIER


def daily_cap_for(plan_tier: str) -> int:
    """Return the daily cap in seconds for a plan tier (-1 means unlimited)."""
    return const.PLAN_DAILY_CAP_SECONDS[normalize_plan_tier(plan_tier)]


def grace_period_for(plan_tier: str) -> int:
    """Return the grace period in seconds for a plan tier."""
    return const.PLAN_GRACE_PERIOD_SECONDS[normalize_plan_tier(plan_tier)]


def _require_non_negative(name: str, seconds: int) -> None:
    if seconds < 0:
        raise ValueError(f"{name} must be non-negative, got {seconds}")


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class UsageDay:
    """Earned and consumed seconds for one local calendar date."""

    date_key: str
    earned_seconds: int = 0
    consumed_seconds: int = 0
    cap_seconds: int = const.PLAN_DAILY_CAP_SECONDS[const.DEFAULT_PLAN_TIER]
    plan_tier: str = const.DEFAULT_PLAN_TIER

    @property
    def is_unlimited(self) -> bool:
        """Return True when the day has no cap."""
        return self.cap_seconds == const.UNLIMITED_CAP_SECONDS

    @property
    def remaining_seconds(self) -> int:
        """Return seconds still available today."""
        if self.is_unlimited:
            return self.earned_seconds - self.consumed_seconds
        return max(
            0, min(self.cap_seconds, self.earned_seconds) - self.consumed_seconds
        )

    @property
    def has_reached_cap(self) -> bool:
        """Return True once consumption reached a finite cap."""
        return not self.is_unlimited and self.consumed_seconds >= self.cap_seconds

    @property
    def cap_progress(self) -> float:
        """Return consumed/cap clamped to [0, 1]; 0.0 when unlimited."""
        if self.is_unlimited:
            return 0.0
        return calculate_ratio(self.consumed_seconds, self.cap_seconds)

    def to_dict(self) -> UsageDayData:
        """Return the persisted form (cap is derived from the tier on load)."""
        return {
            const.DATA_DAY_DATE_KEY: self.date_key,
            const.DATA_DAY_EARNED_SECONDS: self.earned_seconds,
            const.DATA_DAY_CONSUMED_SECONDS: self.consumed_seconds,
            const.DATA_DAY_PLAN_TIER: self.plan_tier,
        }  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, data: UsageDayData | dict[str, Any]) -> UsageDay:
        """Build a UsageDay from its persisted form.

        Raises:
            ValueError: Missing keys, bad date key or negative counters
        """
        try:
            date_key = str(data[const.DATA_DAY_DATE_KEY])
            earned = int(data[const.DATA_DAY_EARNED_SECONDS])
            consumed = int(data[const.DATA_DAY_CONSUMED_SECONDS])
        except (KeyError, TypeError, ValueError) as err:
            raise ValueError(f"Malformed usage day record: {data!r}") from err

        if dt_parse_date(date_key) is None:
            raise ValueError(f"Malformed usage day key: {date_key!r}")
        if earned < 0 or consumed < 0:
            raise ValueError(f"Negative counters in usage day {date_key}")

        plan_tier = normalize_plan_tier(data.get(const.DATA_DAY_PLAN_TIER))
        return cls(
            date_key=date_key,
            earned_seconds=earned,
            consumed_seconds=consumed,
            cap_seconds=daily_cap_for(plan_tier),
            plan_tier=plan_tier,
        )


@dataclass(frozen=True)
class TodayUsage:
    """Read-only view of the usage for the date of a given instant."""

    date_key: str
    earned_seconds: int
    consumed_seconds: int
    remaining_seconds: int
    cap_seconds: int
    has_reached_cap: bool
    cap_progress: float
    plan_tier: str

    @classmethod
    def from_day(cls, day: UsageDay) -> TodayUsage:
        """Project a UsageDay into a TodayUsage view."""
        return cls(
            date_key=day.date_key,
            earned_seconds=day.earned_seconds,
            consumed_seconds=day.consumed_seconds,
            remaining_seconds=day.remaining_seconds,
            cap_seconds=day.cap_seconds,
            has_reached_cap=day.has_reached_cap,
            cap_progress=day.cap_progress,
            plan_tier=day.plan_tier,
        )


# =============================================================================
# USAGE LEDGER
# =============================================================================


class UsageLedger:
    """Daily usage ledger with cap enforcement and midnight rollover."""

    def __init__(
        self,
        plan_tier: str = const.DEFAULT_PLAN_TIER,
        time_zone: tzinfo | None = None,
    ) -> None:
        """Initialize an empty ledger.

        Args:
            plan_tier: Plan tier applied to new days
            time_zone: Zone dates are read in; None keeps the offset of each
                instant (naive instants use the default timezone)
        """
        self._plan_tier = normalize_plan_tier(plan_tier)
        self._time_zone = time_zone
        self._current: UsageDay | None = None
        self._history: list[UsageDay] = []
        self._utc_offset_minutes: int | None = None
        self._timezone_changed_at: str | None = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def plan_tier(self) -> str:
        """Return the active plan tier."""
        return self._plan_tier

    @property
    def current_day(self) -> UsageDay | None:
        """Return the stored current day, if any write happened yet."""
        return self._current

    @property
    def history(self) -> list[UsageDay]:
        """Return archived days, newest first."""
        return list(self._history)

    @property
    def timezone_changed_at(self) -> str | None:
        """Return the ISO instant of the last detected UTC offset change."""
        return self._timezone_changed_at

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _local(self, now: datetime) -> datetime:
        """Return `now` in the ledger zone; without one its own offset is kept."""
        return dt_to_zone(now, self._time_zone)

    def _date_key(self, now: datetime) -> str:
        return dt_date_key(self._local(now))

    def _fresh_day(self, date_key: str) -> UsageDay:
        return UsageDay(
            date_key=date_key,
            cap_seconds=daily_cap_for(self._plan_tier),
            plan_tier=self._plan_tier,
        )

    def _day_for(self, now: datetime) -> UsageDay:
        """Return the stored or archived day for `now`, or a fresh unstored one."""
        date_key = self._date_key(now)
        if self._current is not None and self._current.date_key == date_key:
            return self._current
        for day in self._history:
            if day.date_key == date_key:
                return day
        return self._fresh_day(date_key)

    def _track_utc_offset(self, now: datetime) -> None:
        offset = dt_utc_offset_minutes(self._local(now))
        if self._utc_offset_minutes is not None and offset != self._utc_offset_minutes:
            self._timezone_changed_at = dt_as_utc_iso(now)
            const.LOGGER.info(
                "UsageLedger: UTC offset changed from %s to %s minutes at %s",
                self._utc_offset_minutes,
                offset,
                self._timezone_changed_at,
            )
        self._utc_offset_minutes = offset

    def _ensure_day(self, now: datetime) -> UsageDay:
        """Roll over if needed, then create the current day lazily."""
        self.roll_if_needed(now)
        if self._current is None:
            self._current = self._fresh_day(self._date_key(now))
        return self._current

    # -------------------------------------------------------------------------
    # Rollover
    # -------------------------------------------------------------------------

    def roll_if_needed(self, now: datetime) -> bool:
        """Archive the current day when `now` is on another local date.

        Idempotent within the same day.

        Returns:
            True when a rollover happened
        """
        self._track_utc_offset(now)
        date_key = self._date_key(now)
        if self._current is None or self._current.date_key == date_key:
            return False

        archived = self._current
        self._history.insert(0, archived)

        # A day revisited after a backwards offset change is restored, not duplicated
        restored = next(
            (day for day in self._history if day.date_key == date_key), None
        )
        if restored is not None:
            self._history.remove(restored)
            self._current = restored
        else:
            self._current = self._fresh_day(date_key)

        self.purge_history(now)
        const.LOGGER.info(
            "UsageLedger: Rolled over from %s to %s (earned=%ss, consumed=%ss)",
            archived.date_key,
            date_key,
            archived.earned_seconds,
            archived.consumed_seconds,
        )
        return True

    def purge_history(self, now: datetime) -> int:
        """Drop history older than the retention window.

        Returns:
            Number of entries removed
        """
        cutoff = dt_days_before(
            dt_local_date(self._local(now)),
            const.USAGE_HISTORY_MAX_DAYS,
        )
        kept = [
            day
            for day in self._history
            if (parsed := dt_parse_date(day.date_key)) is not None and parsed >= cutoff
        ]
        kept.sort(key=lambda day: day.date_key, reverse=True)
        kept = kept[: const.USAGE_HISTORY_MAX_DAYS]

        removed = len(self._history) - len(kept)
        self._history = kept
        if removed:
            const.LOGGER.debug(
                "UsageLedger.purge_history: Removed %s entries older than %s",
                removed,
                cutoff,
            )
        return removed

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_earned(self, now: datetime, seconds: int) -> UsageDay:
        """Credit earned seconds to the day of `now`.

        Raises:
            ValueError: seconds is negative
        """
        _require_non_negative("seconds", seconds)
        day = self._ensure_day(now)
        self._current = replace(day, earned_seconds=day.earned_seconds + seconds)
        const.LOGGER.debug(
            "UsageLedger.add_earned: date=%s, seconds=%s, earned=%s",
            self._current.date_key,
            seconds,
            self._current.earned_seconds,
        )
        return self._current

    def consume(self, now: datetime, seconds: int) -> CommandResult[TodayUsage]:
        """Record consumed seconds against the day of `now`.

        Returns:
            CommandResult with the updated TodayUsage, or an
            InsufficientQuotaError when seconds exceed the remaining quota

        Raises:
            ValueError: seconds is negative
        """
        _require_non_negative("seconds", seconds)
        self.roll_if_needed(now)
        remaining = self.remaining(now)
        if seconds > remaining:
            const.LOGGER.warning(
                "UsageLedger.consume: Insufficient quota, requested=%ss, remaining=%ss",
                seconds,
                remaining,
            )
            return CommandResult.failure(InsufficientQuotaError(seconds, remaining))

        day = self._ensure_day(now)
        self._current = replace(
            day, consumed_seconds=day.consumed_seconds + seconds
        )
        const.LOGGER.debug(
            "UsageLedger.consume: date=%s, seconds=%s, consumed=%s",
            self._current.date_key,
            seconds,
            self._current.consumed_seconds,
        )
        return CommandResult.success(TodayUsage.from_day(self._current))

    def set_plan_tier(self, now: datetime, plan_tier: str) -> bool:
        """Change the plan tier for the current day and all future days.

        History is untouched.

        Returns:
            True when the tier changed
        """
        new_tier = normalize_plan_tier(plan_tier)
        self.roll_if_needed(now)
        if new_tier == self._plan_tier and (
            self._current is None or self._current.plan_tier == new_tier
        ):
            return False

        old_tier = self._plan_tier
        self._plan_tier = new_tier
        if self._current is not None and self._current.date_key == self._date_key(now):
            self._current = replace(
                self._current,
                plan_tier=new_tier,
                cap_seconds=daily_cap_for(new_tier),
            )
        const.LOGGER.info(
            "UsageLedger: Plan tier changed from '%s' to '%s'", old_tier, new_tier
        )
        return True

    # -------------------------------------------------------------------------
    # Queries (pure)
    # -------------------------------------------------------------------------

    def remaining(self, now: datetime) -> int:
        """Return seconds still available on the date of `now`."""
        return self._day_for(now).remaining_seconds

    def today_usage(self, now: datetime) -> TodayUsage:
        """Return the usage view for the date of `now`."""
        return TodayUsage.from_day(self._day_for(now))

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def to_snapshot(self) -> UsageLedgerSnapshot:
        """Return the JSON-safe persisted layout."""
        return {
            const.DATA_SCHEMA_VERSION: const.SCHEMA_VERSION_LEDGER,
            const.DATA_PLAN_TIER: self._plan_tier,
            const.DATA_CURRENT: self._current.to_dict() if self._current else None,
            const.DATA_HISTORY: [day.to_dict() for day in self._history],
            const.DATA_UTC_OFFSET_MINUTES: self._utc_offset_minutes,
            const.DATA_TIMEZONE_CHANGED_AT: self._timezone_changed_at,
        }  # type: ignore[return-value]

    @classmethod
    def from_snapshot(
        cls,
        snapshot: UsageLedgerSnapshot | dict[str, Any],
        time_zone: tzinfo | None = None,
    ) -> UsageLedger:
        """Rebuild a ledger from its persisted layout.

        Raises:
            ValueError: The snapshot is malformed
        """
        if not isinstance(snapshot, dict):
            raise ValueError(f"Ledger snapshot must be a dict, got {type(snapshot)}")

        version = snapshot.get(const.DATA_SCHEMA_VERSION)
        if version != const.SCHEMA_VERSION_LEDGER:
            const.LOGGER.warning(
                "UsageLedger: Snapshot schema version %s differs from %s, loading anyway",
                version,
                const.SCHEMA_VERSION_LEDGER,
            )

        ledger = cls(
            plan_tier=snapshot.get(const.DATA_PLAN_TIER, const.DEFAULT_PLAN_TIER),
            time_zone=time_zone,
        )

        current = snapshot.get(const.DATA_CURRENT)
        if current is not None:
            ledger._current = UsageDay.from_dict(current)

        history = snapshot.get(const.DATA_HISTORY) or []
        if not isinstance(history, list):
            raise ValueError("Ledger history must be a list")
        days = [UsageDay.from_dict(entry) for entry in history]
        days.sort(key=lambda day: day.date_key, reverse=True)
        ledger._history = days[: const.USAGE_HISTORY_MAX_DAYS]

        offset = snapshot.get(const.DATA_UTC_OFFSET_MINUTES)
        ledger._utc_offset_minutes = int(offset) if offset is not None else None
        ledger._timezone_changed_at = snapshot.get(const.DATA_TIMEZONE_CHANGED_AT)
        return ledger
