"""Unit tests for AccessController - the access state machine.

Pure Python tests; every instant is passed explicitly.

Test Categories:
- Earning and unlocking (start_work / complete_work)
- Expiry and grace period (tick)
- Rejected commands
- Stacking a session on an unlocked window
- Blocked/accessible target sets and the quota gate
"""

# pylint: disable=redefined-outer-name  # Pytest fixtures shadow names

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from custom_components.earned_access import const
from custom_components.earned_access.engines.access_engine import (
    AccessController,
    Earning,
    Expired,
    Locked,
    Unlocked,
)
from custom_components.earned_access.engines.errors import (
    InvalidTransitionError,
    UnknownWorkoutTypeError,
)
from custom_components.earned_access.engines.usage_ledger import UsageLedger

T0 = datetime(2026, 1, 18, 12, 0, 0, tzinfo=UTC)
TARGETS = frozenset({"com.example.social", "com.example.video", "example.org"})


def at(seconds: int) -> datetime:
    """Return T0 shifted by whole seconds."""
    return T0 + timedelta(seconds=seconds)


def make_controller(plan_tier: str = const.PLAN_TIER_FREE) -> AccessController:
    """Build a controller over TARGETS with an empty ledger."""
    ledger = UsageLedger(plan_tier=plan_tier, time_zone=UTC)
    return AccessController.create(TARGETS, ledger, UTC)


def unlock(controller: AccessController, units: int = 20, now: datetime = T0) -> None:
    """Run a full push-ups session ending at `now`."""
    assert controller.start_work("push-ups", units, now).ok
    assert controller.complete_work(units, now).ok


@pytest.fixture
def controller() -> AccessController:
    """Return a free-tier controller in Locked."""
    return make_controller()


def assert_partition(controller: AccessController, now: datetime) -> None:
    """Blocked and accessible are disjoint and cover every target."""
    blocked = controller.blocked_targets(now)
    accessible = controller.accessible_targets(now)
    assert not blocked & accessible
    assert blocked | accessible == TARGETS


# =============================================================================
# Test: earning and unlocking
# =============================================================================


class TestEarnAndUnlock:
    """Tests for the Locked -> Earning -> Unlocked path."""

    def test_initial_state_is_locked(self, controller: AccessController) -> None:
        """Test a new controller starts Locked with everything blocked."""
        assert isinstance(controller.state, Locked)
        assert controller.blocked_targets(T0) == TARGETS
        assert controller.accessible_targets(T0) == frozenset()

    def test_push_ups_unlock(self, controller: AccessController) -> None:
        """Test 20 push-ups unlock all targets for 600 seconds."""
        started = controller.start_work("push-ups", 20, T0)
        assert started.ok
        assert isinstance(controller.state, Earning)
        assert controller.blocked_targets(T0) == TARGETS

        result = controller.complete_work(20, at(5))

        assert result.ok
        assert result.value is not None
        assert result.value.earned_seconds == 600
        assert result.value.workout_type == "push-ups"
        state = controller.state
        assert isinstance(state, Unlocked)
        assert state.unlocked_at == at(5)
        assert state.expires_at == at(605)
        assert controller.accessible_targets(at(5)) == TARGETS
        assert controller.unlock_time_remaining(at(5)) == 600

    def test_completion_credits_ledger(self, controller: AccessController) -> None:
        """Test earned seconds are added to today's ledger."""
        unlock(controller)
        assert controller.ledger.today_usage(T0).earned_seconds == 600

    def test_session_normalizes_workout_type(
        self, controller: AccessController
    ) -> None:
        """Test the session stores the lowercase type."""
        result = controller.start_work(" Plank ", 3, T0)
        assert result.value is not None
        assert result.value.workout_type == "plank"
        assert result.value.required_units == 3

    def test_completed_units_may_differ(self, controller: AccessController) -> None:
        """Test the grant uses units actually completed."""
        controller.start_work("push-ups", 20, T0)
        result = controller.complete_work(10, T0)
        assert result.value is not None
        assert result.value.earned_seconds == 300


# =============================================================================
# Test: expiry and grace period
# =============================================================================


class TestTick:
    """Tests for time-based transitions."""

    def test_unlocked_until_expiry(self, controller: AccessController) -> None:
        """Test the window closes exactly at unlocked_at + earned seconds."""
        unlock(controller)

        assert not controller.tick(at(599))
        assert isinstance(controller.state, Unlocked)

        assert controller.tick(at(600))
        state = controller.state
        assert isinstance(state, Expired)
        assert state.expired_at == at(600)
        assert state.grace_deadline == at(630)

    def test_grace_period_ends_in_locked(self, controller: AccessController) -> None:
        """Test Expired counts down the grace period and then locks."""
        unlock(controller)
        controller.tick(at(600))

        assert not controller.tick(at(629))
        assert isinstance(controller.state, Expired)
        assert controller.grace_period_remaining(at(629)) == 1

        assert controller.tick(at(630))
        assert isinstance(controller.state, Locked)
        assert controller.grace_period_remaining(at(630)) == 0

    @pytest.mark.parametrize(
        ("plan_tier", "grace"),
        [
            (const.PLAN_TIER_FREE, 30),
            (const.PLAN_TIER_PRO, 60),
            (const.PLAN_TIER_ADVANCED, 120),
        ],
    )
    def test_grace_follows_plan(self, plan_tier: str, grace: int) -> None:
        """Test the grace period length depends on the plan tier."""
        controller = make_controller(plan_tier)
        unlock(controller)
        controller.tick(at(600))

        state = controller.state
        assert isinstance(state, Expired)
        assert state.grace_deadline == at(600 + grace)

    def test_tick_is_idempotent(self, controller: AccessController) -> None:
        """Test ticking twice at the same instant changes state once."""
        unlock(controller)
        assert controller.tick(at(600))
        assert not controller.tick(at(600))
        assert isinstance(controller.state, Expired)

    def test_one_transition_per_tick(self, controller: AccessController) -> None:
        """Test a late tick moves to Expired only, the next one to Locked."""
        unlock(controller)

        assert controller.tick(at(10_000))
        assert isinstance(controller.state, Expired)

        assert controller.tick(at(10_000))
        assert isinstance(controller.state, Locked)

    def test_tick_ignores_locked_and_earning(
        self, controller: AccessController
    ) -> None:
        """Test states without timers never change on tick."""
        assert not controller.tick(at(10_000))
        controller.start_work("squats", 10, T0)
        assert not controller.tick(at(10_000))
        assert isinstance(controller.state, Earning)


# =============================================================================
# Test: rejected commands
# =============================================================================


class TestRejections:
    """Tests for commands that do not apply in the current state."""

    def test_start_while_earning(self, controller: AccessController) -> None:
        """Test a second start_work is rejected."""
        controller.start_work("push-ups", 20, T0)
        state = controller.state

        result = controller.start_work("squats", 10, at(1))

        assert not result.ok
        assert isinstance(result.error, InvalidTransitionError)
        assert result.error.reason == const.REASON_ALREADY_EARNING
        assert result.error.current_state == const.ACCESS_STATE_EARNING
        assert controller.state is state

    def test_cancel_while_locked(self, controller: AccessController) -> None:
        """Test cancel_work outside Earning is rejected."""
        result = controller.cancel_work(T0)
        assert isinstance(result.error, InvalidTransitionError)
        assert result.error.reason == const.REASON_NOT_EARNING
        assert isinstance(controller.state, Locked)

    def test_complete_while_locked(self, controller: AccessController) -> None:
        """Test complete_work outside Earning is rejected."""
        result = controller.complete_work(20, T0)
        assert isinstance(result.error, InvalidTransitionError)
        assert result.error.reason == const.REASON_NOT_EARNING

    def test_complete_with_nothing_earned(self, controller: AccessController) -> None:
        """Test zero units keep the session running."""
        controller.start_work("push-ups", 20, T0)

        result = controller.complete_work(0, at(5))

        assert isinstance(result.error, InvalidTransitionError)
        assert result.error.reason == const.REASON_NOTHING_EARNED
        assert isinstance(controller.state, Earning)
        assert controller.ledger.current_day is None

    def test_unknown_type_raises(self, controller: AccessController) -> None:
        """Test unknown types raise without leaving Locked."""
        with pytest.raises(UnknownWorkoutTypeError):
            controller.start_work("yoga", 10, T0)
        assert isinstance(controller.state, Locked)

    def test_negative_units_raise(self, controller: AccessController) -> None:
        """Test negative unit counts raise."""
        with pytest.raises(ValueError):
            controller.start_work("squats", -1, T0)
        controller.start_work("squats", 1, T0)
        with pytest.raises(ValueError):
            controller.complete_work(-1, T0)
        assert isinstance(controller.state, Earning)


# =============================================================================
# Test: cancel, lock and restart paths
# =============================================================================


class TestCancelAndLock:
    """Tests for leaving a session or forcing Locked."""

    def test_cancel_returns_to_locked(self, controller: AccessController) -> None:
        """Test cancelling a fresh session locks again."""
        controller.start_work("push-ups", 20, T0)
        result = controller.cancel_work(at(10))
        assert result.ok
        assert isinstance(controller.state, Locked)

    def test_start_from_expired_discards_grace(
        self, controller: AccessController
    ) -> None:
        """Test a session started in the grace period does not resume it."""
        unlock(controller)
        controller.tick(at(600))

        result = controller.start_work("squats", 10, at(610))
        assert result.value is not None
        assert result.value.resume_state is None
        assert controller.grace_period_remaining(at(610)) == 0

        controller.cancel_work(at(615))
        assert isinstance(controller.state, Locked)

    @pytest.mark.parametrize("setup", ["locked", "earning", "unlocked", "expired"])
    def test_lock_from_any_state(self, controller: AccessController, setup: str) -> None:
        """Test lock() always ends in Locked."""
        if setup == "earning":
            controller.start_work("push-ups", 20, T0)
        elif setup == "unlocked":
            unlock(controller)
        elif setup == "expired":
            unlock(controller)
            controller.tick(at(600))

        result = controller.lock(at(1))

        assert result.ok
        assert isinstance(controller.state, Locked)
        assert controller.blocked_targets(at(1)) == TARGETS


# =============================================================================
# Test: stacking
# =============================================================================


class TestStacking:
    """Tests for starting a new session while unlocked."""

    def test_remaining_window_is_carried(self, controller: AccessController) -> None:
        """Test the unspent window is added to the next grant."""
        unlock(controller)

        started = controller.start_work("push-ups", 20, at(100))
        assert started.value is not None
        assert started.value.carried_seconds == 500
        assert controller.blocked_targets(at(100)) == TARGETS

        controller.complete_work(20, at(160))

        state = controller.state
        assert isinstance(state, Unlocked)
        assert state.carried_seconds == 500
        assert state.expires_at == at(160 + 600 + 500)
        assert controller.unlock_time_remaining(at(160)) == 1100

    def test_cancel_resumes_unlocked(self, controller: AccessController) -> None:
        """Test cancelling a stacked session restores the original window."""
        unlock(controller)
        original = controller.state

        controller.start_work("squats", 10, at(100))
        result = controller.cancel_work(at(120))

        assert result.ok
        assert controller.state == original
        assert controller.unlock_time_remaining(at(120)) == 480

    def test_resumed_window_may_expire(self, controller: AccessController) -> None:
        """Test a resumed window whose time ran out expires on the next tick."""
        unlock(controller)
        controller.start_work("squats", 10, at(100))
        controller.cancel_work(at(700))

        assert isinstance(controller.state, Unlocked)
        assert controller.tick(at(700))
        assert isinstance(controller.state, Expired)


# =============================================================================
# Test: target sets
# =============================================================================


class TestTargetSets:
    """Tests for the blocking API."""

    def test_partition_in_every_state(self, controller: AccessController) -> None:
        """Test blocked and accessible always partition the targets."""
        assert_partition(controller, T0)
        controller.start_work("push-ups", 20, T0)
        assert_partition(controller, T0)
        controller.complete_work(20, T0)
        assert_partition(controller, T0)
        controller.tick(at(600))
        assert_partition(controller, at(600))
        controller.tick(at(630))
        assert_partition(controller, at(630))

    def test_expired_blocks_everything(self, controller: AccessController) -> None:
        """Test nothing is accessible during the grace period."""
        unlock(controller)
        controller.tick(at(600))
        assert controller.accessible_targets(at(605)) == frozenset()

    def test_exhausted_quota_blocks_unlocked(
        self, controller: AccessController
    ) -> None:
        """Test an Unlocked window without quota exposes nothing."""
        unlock(controller)
        assert controller.ledger.consume(at(10), 600).ok

        assert isinstance(controller.state, Unlocked)
        assert controller.accessible_targets(at(10)) == frozenset()
        assert controller.blocked_targets(at(10)) == TARGETS

    def test_top_up_restores_access(self, controller: AccessController) -> None:
        """Test access returns as soon as the ledger has quota again."""
        unlock(controller)
        controller.ledger.consume(at(10), 600)

        controller.ledger.add_earned(at(20), 60)

        assert controller.accessible_targets(at(20)) == TARGETS

    def test_new_day_without_quota_blocks(self, controller: AccessController) -> None:
        """Test a window crossing midnight needs quota on the new day."""
        late = datetime(2026, 1, 18, 23, 55, 0, tzinfo=UTC)
        unlock(controller, now=late)
        after_midnight = late + timedelta(minutes=6)

        assert isinstance(controller.state, Unlocked)
        assert controller.accessible_targets(after_midnight) == frozenset()
