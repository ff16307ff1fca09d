# File: coordinator.py
"""Coordinator for the Earned Access integration.

Owns the clock for the core: every periodic update and every command reads
`dt_util.now()` once and injects it into the SessionCoordinator. The update
interval drives `tick(now)`; launch attempts from the MonitorAdapter are
consumed by one background task and each one is evaluated with its own
timestamp.

Blocked launches are announced on the bus as `earned_access_launch_blocked`
so automations (or a native shield, when the monitor reports
enforcement_available) can react.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from . import const
from .engines.access_engine import Earning
from .engines.errors import EarnedAccessError
from .session import SessionCoordinator
from .utils.math_utils import parse_target_ids

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .engines.access_engine import EarnedGrant, WorkSession
    from .engines.results import CommandResult
    from .engines.usage_ledger import TodayUsage
    from .engines.workout_history import WorkoutStats
    from .monitor import LaunchAttempt, MonitorAdapter
    from .session import LaunchDecision
    from .store import EarnedAccessStore


@dataclass(frozen=True)
class EarnedAccessData:
    """Point-in-time view published to entities."""

    state: str
    blocked_targets: frozenset[str]
    accessible_targets: frozenset[str]
    grace_period_remaining: int
    unlock_time_remaining: int
    message: str | None
    today: TodayUsage
    workouts: WorkoutStats
    workout_type: str | None = None


class EarnedAccessDataCoordinator(DataUpdateCoordinator[EarnedAccessData]):
    """Coordinator for Earned Access.

    The only writer of the SessionCoordinator; runs on the event loop.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: EarnedAccessStore,
        monitor: MonitorAdapter,
    ) -> None:
        """Initialize the EarnedAccessDataCoordinator."""
        tick_interval = config_entry.options.get(
            const.CONF_TICK_INTERVAL, const.DEFAULT_TICK_INTERVAL
        )

        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=timedelta(seconds=tick_interval),
        )
        self.store = store
        self.monitor = monitor
        self.session = SessionCoordinator(
            targets=parse_target_ids(config_entry.options.get(const.CONF_TARGETS)),
            persistence=store,
            plan_tier=config_entry.options.get(
                const.CONF_PLAN_TIER, const.DEFAULT_PLAN_TIER
            ),
            time_zone=dt_util.get_default_time_zone(),
        )

    # -------------------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------------------

    def _build_data(self, now: datetime) -> EarnedAccessData:
        """Derive the entity view from the session at `now`."""
        state = self.session.state
        return EarnedAccessData(
            state=state.name,
            blocked_targets=self.session.blocked_targets(now),
            accessible_targets=self.session.accessible_targets(now),
            grace_period_remaining=self.session.grace_period_remaining(now),
            unlock_time_remaining=self.session.unlock_time_remaining(now),
            message=self.session.access_message(now),
            today=self.session.today_usage(now),
            workouts=self.session.workout_stats(now),
            workout_type=(
                state.session.workout_type if isinstance(state, Earning) else None
            ),
        )

    async def _async_update_data(self) -> EarnedAccessData:
        """Periodic tick."""
        try:
            now = dt_util.now()
            if self.session.tick(now):
                const.LOGGER.debug(
                    "DEBUG: Access state changed on tick: %s", self.session.state.name
                )
            return self._build_data(now)
        except EarnedAccessError as err:
            raise UpdateFailed(f"Error updating Earned Access data: {err}") from err

    # -------------------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------------------

    @callback
    def async_apply_options(self) -> None:
        """Apply edited options without restarting the session."""
        options = self.config_entry.options
        now = dt_util.now()

        self.session.set_targets(parse_target_ids(options.get(const.CONF_TARGETS)))

        plan_tier = options.get(const.CONF_PLAN_TIER, const.DEFAULT_PLAN_TIER)
        if plan_tier != self.session.plan_tier:
            self.session.set_plan_tier(plan_tier, now)

        self.update_interval = timedelta(
            seconds=options.get(const.CONF_TICK_INTERVAL, const.DEFAULT_TICK_INTERVAL)
        )
        const.LOGGER.info(
            "INFO: Options applied (targets=%s, plan=%s, tick=%s)",
            len(self.session.targets),
            self.session.plan_tier,
            self.update_interval,
        )
        self.async_set_updated_data(self._build_data(now))

    # -------------------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------------------

    def _finish_command(
        self, command: str, result: CommandResult, now: datetime
    ) -> Any:
        """Publish the new state, or raise the rejection for the service caller."""
        if not result.ok and result.error is not None:
            const.LOGGER.warning("WARNING: %s rejected: %s", command, result.error)
            raise HomeAssistantError(
                str(result.error),
                translation_domain=const.DOMAIN,
                translation_key=result.error.translation_key,
                translation_placeholders=result.error.translation_placeholders,
            )
        self.async_set_updated_data(self._build_data(now))
        return result.value

    @callback
    def async_start_work(self, workout_type: str, units: int) -> WorkSession:
        """Begin a work session."""
        now = dt_util.now()
        try:
            result = self.session.start_work(workout_type, units, now)
        except EarnedAccessError as err:
            raise HomeAssistantError(
                str(err),
                translation_domain=const.DOMAIN,
                translation_key=err.translation_key,
                translation_placeholders=err.translation_placeholders,
            ) from err
        return self._finish_command(const.SERVICE_START_WORK, result, now)

    @callback
    def async_cancel_work(self) -> None:
        """Abandon the running work session."""
        now = dt_util.now()
        self._finish_command(
            const.SERVICE_CANCEL_WORK, self.session.cancel_work(now), now
        )

    @callback
    def async_complete_work(self, units_completed: int) -> EarnedGrant:
        """Finish the work session."""
        now = dt_util.now()
        return self._finish_command(
            const.SERVICE_COMPLETE_WORK,
            self.session.complete_work(units_completed, now),
            now,
        )

    @callback
    def async_lock(self) -> None:
        """Force the Locked state."""
        now = dt_util.now()
        self._finish_command(const.SERVICE_LOCK, self.session.lock(now), now)

    @callback
    def async_record_usage(self, seconds: int) -> TodayUsage:
        """Consume seconds from today's quota."""
        now = dt_util.now()
        return self._finish_command(
            const.SERVICE_RECORD_USAGE, self.session.record_usage(seconds, now), now
        )

    @callback
    def async_set_plan_tier(self, plan_tier: str) -> TodayUsage:
        """Change the plan tier and keep the entry options in sync."""
        now = dt_util.now()
        result = self.session.set_plan_tier(plan_tier, now)
        if self.config_entry.options.get(const.CONF_PLAN_TIER) != plan_tier:
            self.hass.config_entries.async_update_entry(
                self.config_entry,
                options={**self.config_entry.options, const.CONF_PLAN_TIER: plan_tier},
            )
        return self._finish_command(const.SERVICE_SET_PLAN_TIER, result, now)

    # -------------------------------------------------------------------------------------
    # Launch monitoring
    # -------------------------------------------------------------------------------------

    @callback
    def async_handle_launch(self, attempt: LaunchAttempt) -> LaunchDecision:
        """Evaluate one launch attempt and announce it when blocked."""
        decision = self.session.handle_launch(attempt.target_id, attempt.timestamp)
        if decision.blocked:
            self.hass.bus.async_fire(
                const.EVENT_LAUNCH_BLOCKED,
                {
                    const.FIELD_TARGET_ID: decision.target_id,
                    const.ATTR_MESSAGE: decision.message,
                    const.ATTR_CAPABILITY: str(self.monitor.capability),
                },
            )
            const.LOGGER.info(
                "INFO: Blocked launch of '%s' (%s)",
                decision.target_id,
                decision.message,
            )
        self.async_set_updated_data(self._build_data(attempt.timestamp))
        return decision

    async def async_consume_launches(self) -> None:
        """Feed MonitorAdapter launch attempts into the session until cancelled."""
        async for attempt in self.monitor.observe_launch():
            self.async_handle_launch(attempt)
