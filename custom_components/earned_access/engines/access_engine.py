"""Access Engine - State machine granting and revoking access to targets.

States (cyclic, initial Locked):

- Locked ──start_work──▶ Earning ──complete_work──▶ Unlocked
- Unlocked ──tick (grant spent)──▶ Expired ──tick (grace over)──▶ Locked
- Earning ──cancel_work──▶ Locked
- Expired ──start_work──▶ Earning discards the remaining grace.
- Unlocked ──start_work──▶ Earning stacks: the running Unlocked state is kept
  on the session so cancel_work resumes it, and its remaining unlock seconds
  are carried into the next Unlocked state.
- lock() moves any state to Locked.

Blocking contract: callers derive visibility ONLY from blocked_targets() and
accessible_targets(). The two sets are disjoint and their union is the full
configured set. Access also requires daily quota: an Unlocked state with an
exhausted ledger exposes no accessible targets and unblocks again as soon as
the ledger is topped up.

Every operation takes `now` explicitly; the engine never reads the clock and
never checks that `now` is monotonic. Rejected commands RETURN an
InvalidTransitionError inside a CommandResult and leave the state unchanged.

ARCHITECTURE: Pure logic, NO Home Assistant dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from .. import const
from ..utils.dt_utils import dt_add_seconds, dt_normalize, dt_seconds_until
from .errors import InvalidTransitionError, UnknownWorkoutTypeError
from .results import CommandResult
from .reward_engine import RewardEngine
from .usage_ledger import grace_period_for

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime, tzinfo

    from .usage_ledger import UsageLedger


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class EarnedGrant:
    """Unlock time earned by one completed work session.

    earned_seconds is always RewardEngine.earn() output.
    """

    workout_type: str
    units_completed: int
    earned_seconds: int
    created_at: datetime


@dataclass(frozen=True)
class Locked:
    """No access. Initial state."""

    name: ClassVar[str] = const.ACCESS_STATE_LOCKED


@dataclass(frozen=True)
class Unlocked:
    """Access granted until unlocked_at + earned_seconds + carried_seconds.

    Attributes:
        grant: The grant that opened this window
        unlocked_at: When the grant was applied
        carried_seconds: Unspent seconds carried over from a stacked window
    """

    grant: EarnedGrant
    unlocked_at: datetime
    carried_seconds: int = 0
    name: ClassVar[str] = const.ACCESS_STATE_UNLOCKED

    @property
    def expires_at(self) -> datetime:
        """Return the instant the window closes."""
        return dt_add_seconds(
            self.unlocked_at, self.grant.earned_seconds + self.carried_seconds
        )


@dataclass(frozen=True)
class WorkSession:
    """A work session in progress.

    Attributes:
        workout_type: Normalized workout type
        required_units: Units the user committed to
        started_at: When start_work was accepted
        resume_state: Unlocked state this session was stacked on, else None
        carried_seconds: Unlock seconds left on resume_state at start time
    """

    workout_type: str
    required_units: int
    started_at: datetime
    resume_state: Unlocked | None = None
    carried_seconds: int = 0


@dataclass(frozen=True)
class Earning:
    """Work in progress. Nothing is accessible."""

    session: WorkSession
    name: ClassVar[str] = const.ACCESS_STATE_EARNING


@dataclass(frozen=True)
class Expired:
    """Grant spent; grace period running until grace_deadline."""

    grant: EarnedGrant
    expired_at: datetime
    grace_deadline: datetime
    name: ClassVar[str] = const.ACCESS_STATE_EXPIRED


AccessState = Locked | Earning | Unlocked | Expired


# =============================================================================
# ACCESS CONTROLLER
# =============================================================================


@dataclass
class AccessController:
    """Access-control state machine over a fixed target set.

    Attributes:
        targets: Configured target identifiers
        ledger: Usage ledger credited on completion and consulted for quota
        time_zone: Timezone for naive instants (default timezone if None)
    """

    targets: frozenset[str]
    ledger: UsageLedger
    time_zone: tzinfo | None = None
    _state: AccessState = field(default_factory=Locked, init=False)

    @classmethod
    def create(
        cls,
        targets: Iterable[str],
        ledger: UsageLedger,
        time_zone: tzinfo | None = None,
    ) -> AccessController:
        """Build a controller, freezing the target set."""
        return cls(targets=frozenset(targets), ledger=ledger, time_zone=time_zone)

    @property
    def state(self) -> AccessState:
        """Return the current state."""
        return self._state

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _now(self, now: datetime) -> datetime:
        return dt_normalize(now, self.time_zone)

    def _transition(self, new_state: AccessState, trigger: str) -> None:
        const.LOGGER.debug(
            "AccessController: %s -> %s (%s)",
            self._state.name,
            new_state.name,
            trigger,
        )
        self._state = new_state

    def _reject(self, action: str, reason: str) -> CommandResult:
        error = InvalidTransitionError(self._state.name, action, reason)
        const.LOGGER.debug("AccessController: Rejected %s", error)
        return CommandResult.failure(error)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start_work(
        self, workout_type: str, units: int, now: datetime
    ) -> CommandResult[WorkSession]:
        """Begin a work session.

        Accepted from Locked, Expired (grace discarded) and Unlocked (stacked).

        Raises:
            UnknownWorkoutTypeError: The workout type is not configured
            ValueError: units is negative
        """
        if not RewardEngine.is_known_type(workout_type):
            raise UnknownWorkoutTypeError(str(workout_type))
        if units < 0:
            raise ValueError(f"units must be non-negative, got {units}")

        state = self._state
        if isinstance(state, Earning):
            return self._reject(const.ACTION_START_WORK, const.REASON_ALREADY_EARNING)

        now = self._now(now)
        resume_state: Unlocked | None = None
        carried = 0
        if isinstance(state, Unlocked):
            resume_state = state
            carried = dt_seconds_until(state.expires_at, now)

        session = WorkSession(
            workout_type=workout_type.strip().lower(),
            required_units=units,
            started_at=now,
            resume_state=resume_state,
            carried_seconds=carried,
        )
        self._transition(Earning(session), const.ACTION_START_WORK)
        return CommandResult.success(session)

    def cancel_work(self, now: datetime) -> CommandResult[AccessState]:
        """Abandon the running session.

        A stacked session resumes the Unlocked state it was started from;
        otherwise the controller returns to Locked.
        """
        state = self._state
        if not isinstance(state, Earning):
            return self._reject(const.ACTION_CANCEL_WORK, const.REASON_NOT_EARNING)

        new_state: AccessState = state.session.resume_state or Locked()
        self._transition(new_state, const.ACTION_CANCEL_WORK)
        return CommandResult.success(new_state)

    def complete_work(
        self, units_completed: int, now: datetime
    ) -> CommandResult[EarnedGrant]:
        """Finish the running session and unlock for the earned seconds.

        When nothing is earned the state stays Earning and the result carries
        InvalidTransitionError(reason=nothing_earned).

        Raises:
            ValueError: units_completed is negative
        """
        state = self._state
        if not isinstance(state, Earning):
            return self._reject(const.ACTION_COMPLETE_WORK, const.REASON_NOT_EARNING)
        if units_completed < 0:
            raise ValueError(
                f"units_completed must be non-negative, got {units_completed}"
            )

        session = state.session
        seconds = RewardEngine.earn(session.workout_type, units_completed)
        if seconds <= 0:
            return self._reject(
                const.ACTION_COMPLETE_WORK, const.REASON_NOTHING_EARNED
            )

        now = self._now(now)
        self.ledger.add_earned(now, seconds)
        grant = EarnedGrant(
            workout_type=session.workout_type,
            units_completed=units_completed,
            earned_seconds=seconds,
            created_at=now,
        )
        self._transition(
            Unlocked(
                grant=grant,
                unlocked_at=now,
                carried_seconds=session.carried_seconds,
            ),
            const.ACTION_COMPLETE_WORK,
        )
        return CommandResult.success(grant)

    def lock(self, now: datetime) -> CommandResult[AccessState]:  # noqa: ARG002
        """Force Locked from any state, discarding session, grant and grace."""
        new_state = Locked()
        self._transition(new_state, const.SERVICE_LOCK)
        return CommandResult.success(new_state)

    def tick(self, now: datetime) -> bool:
        """Evaluate time-based transitions; at most one per call.

        Returns:
            True when the state changed
        """
        now = self._now(now)
        state = self._state

        if isinstance(state, Unlocked) and now >= state.expires_at:
            grace = grace_period_for(self.ledger.plan_tier)
            self._transition(
                Expired(
                    grant=state.grant,
                    expired_at=now,
                    grace_deadline=dt_add_seconds(now, grace),
                ),
                "tick",
            )
            return True

        if isinstance(state, Expired) and now >= state.grace_deadline:
            self._transition(Locked(), "tick")
            return True

        return False

    # -------------------------------------------------------------------------
    # Derived target sets (sole blocking API)
    # -------------------------------------------------------------------------

    def accessible_targets(self, now: datetime) -> frozenset[str]:
        """Return the full set only when Unlocked with quota left."""
        if not isinstance(self._state, Unlocked):
            return frozenset()
        if self.ledger.remaining(self._now(now)) > 0:
            return self.targets
        return frozenset()

    def blocked_targets(self, now: datetime) -> frozenset[str]:
        """Return the complement of accessible_targets()."""
        return self.targets - self.accessible_targets(now)

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    def grace_period_remaining(self, now: datetime) -> int:
        """Return whole seconds until the grace deadline while Expired, else 0."""
        if isinstance(self._state, Expired):
            return dt_seconds_until(self._state.grace_deadline, self._now(now))
        return 0

    def unlock_time_remaining(self, now: datetime) -> int:
        """Return whole seconds until the window closes while Unlocked, else 0."""
        if isinstance(self._state, Unlocked):
            return dt_seconds_until(self._state.expires_at, self._now(now))
        return 0
