"""Session Coordinator - Composition root of the Earned Access core.

Wires RewardEngine, UsageLedger, AccessController and WorkoutHistory together
and exposes the command/query API consumed by the host:

Commands (return CommandResult, never raise for expected rejections):
    start_work, cancel_work, complete_work, lock, record_usage, set_plan_tier

Queries:
    tick, blocked_targets, accessible_targets, grace_period_remaining,
    unlock_time_remaining, today_usage, workout_stats, access_message,
    handle_launch

Persistence is a side effect AFTER a successful ledger mutation (and after any
call that rolled the day over). Completed workouts are also recorded in the
workout history, which is stored in the same snapshot. A failed save is
logged, never turns into a command failure, and is retried with the next
mutation. Access state itself is transient: a new coordinator always starts
Locked.

ARCHITECTURE: Pure Python, NO Home Assistant dependencies. The host owns the
clock and the persistence backend; both are injected.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import RLock
from typing import TYPE_CHECKING, Protocol

from . import const
from .engines.access_engine import AccessController, Expired, Unlocked
from .engines.errors import PersistenceFailureError
from .engines.results import CommandResult
from .engines.usage_ledger import UsageLedger
from .engines.workout_history import WorkoutHistory

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime, tzinfo

    from .engines.access_engine import AccessState, EarnedGrant, WorkSession
    from .engines.usage_ledger import TodayUsage, UsageDay
    from .engines.workout_history import WorkoutRecord, WorkoutStats
    from .type_defs import UsageLedgerSnapshot


class PersistenceAdapter(Protocol):
    """Backend storing the usage ledger snapshot.

    Both methods may raise PersistenceFailureError or OSError.
    """

    def load(self) -> UsageLedgerSnapshot | None:
        """Return the stored snapshot, or None when nothing is stored."""

    def save(self, snapshot: UsageLedgerSnapshot) -> None:
        """Store the snapshot."""


@dataclass(frozen=True)
class LaunchDecision:
    """Outcome of a target launch attempt.

    Attributes:
        target_id: The launched target
        timestamp: When the launch was attempted
        blocked: True when the target is in blocked_targets at timestamp
        message: User-visible message key when blocked, else None
    """

    target_id: str
    timestamp: datetime
    blocked: bool
    message: str | None = None


class SessionCoordinator:
    """Command/query facade over the access controller and usage ledger."""

    def __init__(
        self,
        targets: Iterable[str],
        persistence: PersistenceAdapter | None = None,
        plan_tier: str = const.DEFAULT_PLAN_TIER,
        time_zone: tzinfo | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            targets: Configured target identifiers
            persistence: Optional ledger storage backend
            plan_tier: Plan tier used when no ledger is stored yet
            time_zone: Timezone for naive instants (default timezone if None)
        """
        self._lock = RLock()
        self._persistence = persistence
        self._time_zone = time_zone
        self._persistence_pending = False
        snapshot = self._load_snapshot()
        self._ledger = self._load_ledger(snapshot, plan_tier)
        self._workouts = self._load_workouts(snapshot)
        self._controller = AccessController.create(targets, self._ledger, time_zone)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load_snapshot(self) -> UsageLedgerSnapshot | None:
        if self._persistence is None:
            return None
        try:
            snapshot = self._persistence.load()
        except (PersistenceFailureError, OSError) as err:
            const.LOGGER.error(
                "SessionCoordinator: Failed to load ledger, starting fresh: %s", err
            )
            return None
        if snapshot is None:
            const.LOGGER.debug("SessionCoordinator: No stored ledger, starting fresh")
        return snapshot

    def _load_ledger(
        self, snapshot: UsageLedgerSnapshot | None, plan_tier: str
    ) -> UsageLedger:
        if snapshot is None:
            return UsageLedger(plan_tier=plan_tier, time_zone=self._time_zone)

        try:
            ledger = UsageLedger.from_snapshot(snapshot, time_zone=self._time_zone)
        except ValueError as err:
            const.LOGGER.error(
                "SessionCoordinator: Stored ledger is malformed, starting fresh: %s",
                err,
            )
            return UsageLedger(plan_tier=plan_tier, time_zone=self._time_zone)

        const.LOGGER.info(
            "SessionCoordinator: Loaded ledger (plan=%s, history=%s days)",
            ledger.plan_tier,
            len(ledger.history),
        )
        return ledger

    def _load_workouts(self, snapshot: UsageLedgerSnapshot | None) -> WorkoutHistory:
        stored = snapshot.get(const.DATA_WORKOUTS) if isinstance(snapshot, dict) else None
        if stored is None:
            return WorkoutHistory(time_zone=self._time_zone)

        try:
            return WorkoutHistory.from_snapshot(stored, time_zone=self._time_zone)
        except ValueError as err:
            const.LOGGER.error(
                "SessionCoordinator: Stored workout history is malformed, "
                "starting fresh: %s",
                err,
            )
            return WorkoutHistory(time_zone=self._time_zone)

    def _snapshot(self) -> UsageLedgerSnapshot:
        snapshot = self._ledger.to_snapshot()
        snapshot[const.DATA_WORKOUTS] = self._workouts.to_snapshot()  # type: ignore[literal-required]
        return snapshot

    def _persist(self) -> None:
        """Save the ledger snapshot; failures mark the save as pending."""
        if self._persistence is None:
            return
        try:
            self._persistence.save(self._snapshot())
        except (PersistenceFailureError, OSError) as err:
            self._persistence_pending = True
            const.LOGGER.error(
                "SessionCoordinator: Failed to save ledger, will retry: %s", err
            )
            return
        if self._persistence_pending:
            const.LOGGER.info("SessionCoordinator: Pending ledger save completed")
        self._persistence_pending = False

    @property
    def persistence_pending(self) -> bool:
        """Return True when the last save failed and awaits a retry."""
        return self._persistence_pending

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> AccessState:
        """Return the current access state."""
        return self._controller.state

    @property
    def targets(self) -> frozenset[str]:
        """Return the configured target set."""
        return self._controller.targets

    @property
    def plan_tier(self) -> str:
        """Return the active plan tier."""
        return self._ledger.plan_tier

    @property
    def usage_history(self) -> list[UsageDay]:
        """Return archived usage days, newest first."""
        with self._lock:
            return self._ledger.history

    @property
    def workout_history(self) -> list[WorkoutRecord]:
        """Return kept workout records, newest first."""
        with self._lock:
            return self._workouts.records

    def ledger_snapshot(self) -> UsageLedgerSnapshot:
        """Return the persisted snapshot (ledger and workout history)."""
        with self._lock:
            return self._snapshot()

    def set_targets(self, targets: Iterable[str]) -> None:
        """Replace the configured target set without touching the state."""
        with self._lock:
            self._controller.targets = frozenset(targets)
            const.LOGGER.debug(
                "SessionCoordinator: Target set updated (%s targets)",
                len(self._controller.targets),
            )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start_work(
        self, workout_type: str, units: int, now: datetime
    ) -> CommandResult[WorkSession]:
        """Begin a work session."""
        with self._lock:
            return self._controller.start_work(workout_type, units, now)

    def cancel_work(self, now: datetime) -> CommandResult[AccessState]:
        """Abandon the running work session."""
        with self._lock:
            return self._controller.cancel_work(now)

    def complete_work(
        self, units_completed: int, now: datetime
    ) -> CommandResult[EarnedGrant]:
        """Finish the work session; the value is the EarnedGrant."""
        with self._lock:
            result = self._controller.complete_work(units_completed, now)
            if result.ok and result.value is not None:
                self._workouts.record(result.value)
                self._persist()
            return result

    def lock(self, now: datetime) -> CommandResult[AccessState]:
        """Force the Locked state."""
        with self._lock:
            return self._controller.lock(now)

    def record_usage(self, seconds: int, now: datetime) -> CommandResult[TodayUsage]:
        """Consume seconds from today's quota.

        A rollover is persisted even when the consumption is rejected.
        """
        with self._lock:
            rolled = self._ledger.roll_if_needed(now)
            result = self._ledger.consume(now, seconds)
            if result.ok or rolled:
                self._persist()
            return result

    def set_plan_tier(self, plan_tier: str, now: datetime) -> CommandResult[TodayUsage]:
        """Change the plan tier for today and future days."""
        with self._lock:
            rolled = self._ledger.roll_if_needed(now)
            if self._ledger.set_plan_tier(now, plan_tier) or rolled:
                self._persist()
            return CommandResult.success(self._ledger.today_usage(now))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def tick(self, now: datetime) -> bool:
        """Roll the ledger if needed and evaluate one timed transition.

        Returns:
            True when the access state changed
        """
        with self._lock:
            rolled = self._ledger.roll_if_needed(now)
            changed = self._controller.tick(now)
            if rolled:
                self._persist()
            return changed

    def blocked_targets(self, now: datetime) -> frozenset[str]:
        """Return targets that must be blocked at `now`."""
        with self._lock:
            return self._controller.blocked_targets(now)

    def accessible_targets(self, now: datetime) -> frozenset[str]:
        """Return targets that may be used at `now`."""
        with self._lock:
            return self._controller.accessible_targets(now)

    def grace_period_remaining(self, now: datetime) -> int:
        """Return whole seconds left in the grace period."""
        with self._lock:
            return self._controller.grace_period_remaining(now)

    def unlock_time_remaining(self, now: datetime) -> int:
        """Return whole seconds left in the unlock window."""
        with self._lock:
            return self._controller.unlock_time_remaining(now)

    def today_usage(self, now: datetime) -> TodayUsage:
        """Return the usage view for the date of `now`."""
        with self._lock:
            return self._ledger.today_usage(now)

    def workout_stats(self, now: datetime) -> WorkoutStats:
        """Return the workout history view (streak, totals, recent) at `now`."""
        with self._lock:
            return self._workouts.stats(now)

    def access_message(self, now: datetime) -> str | None:
        """Return the message key explaining why targets are blocked.

        Returns:
            None while Unlocked with quota left, otherwise one of
            daily_cap_reached, grace_period_ending or locked
        """
        with self._lock:
            state = self._controller.state
            usage = self._ledger.today_usage(now)
            if isinstance(state, Unlocked):
                if usage.remaining_seconds > 0:
                    return None
                return const.MESSAGE_DAILY_CAP_REACHED
            if usage.has_reached_cap:
                return const.MESSAGE_DAILY_CAP_REACHED
            if isinstance(state, Expired):
                return const.MESSAGE_GRACE_PERIOD_ENDING
            return const.MESSAGE_LOCKED

    def handle_launch(self, target_id: str, now: datetime) -> LaunchDecision:
        """Evaluate a launch attempt: one tick, then a membership check.

        Targets outside the configured set are never blocked.
        """
        with self._lock:
            self.tick(now)
            blocked = target_id in self._controller.blocked_targets(now)
            decision = LaunchDecision(
                target_id=target_id,
                timestamp=now,
                blocked=blocked,
                message=self.access_message(now) if blocked else None,
            )
        if blocked:
            const.LOGGER.debug(
                "SessionCoordinator: Blocked launch of %s (%s)",
                target_id,
                decision.message,
            )
        return decision
