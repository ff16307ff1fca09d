# File: sensor.py
"""Sensors for the Earned Access integration.

Sensors Defined in This File (3):

01. AccessStateSensor - locked / earning / unlocked / expired, with the
    blocked and accessible target lists as attributes
02. DailyUsageSensor - seconds of quota remaining today, with the rest of
    today's usage as attributes
03. WorkoutStreakSensor - consecutive days with a workout, with totals and
    the recent workouts as attributes

All are read-only views of the coordinator data. Visibility decisions must
be taken from the target list attributes, never from the state alone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.const import UnitOfTime

from . import const
from .engines.reward_engine import RewardEngine
from .entity import EarnedAccessCoordinatorEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import EarnedAccessDataCoordinator


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensors for Earned Access integration."""
    coordinator: EarnedAccessDataCoordinator = hass.data[const.DOMAIN][
        entry.entry_id
    ][const.COORDINATOR]

    async_add_entities(
        [
            AccessStateSensor(coordinator, entry),
            DailyUsageSensor(coordinator, entry),
            WorkoutStreakSensor(coordinator, entry),
        ]
    )


class AccessStateSensor(EarnedAccessCoordinatorEntity, SensorEntity):
    """Sensor for the current access state."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = const.ACCESS_STATES
    _attr_icon = "mdi:lock-clock"

    def __init__(
        self, coordinator: EarnedAccessDataCoordinator, entry: ConfigEntry
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, const.SENSOR_KEY_ACCESS_STATE)

    @property
    def native_value(self) -> str | None:
        """Return the access state name."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.state

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return target lists, timers and the user-visible message."""
        data = self.coordinator.data
        if data is None:
            return {}
        return {
            const.ATTR_BLOCKED_TARGETS: sorted(data.blocked_targets),
            const.ATTR_ACCESSIBLE_TARGETS: sorted(data.accessible_targets),
            const.ATTR_GRACE_PERIOD_REMAINING: data.grace_period_remaining,
            const.ATTR_UNLOCK_TIME_REMAINING: data.unlock_time_remaining,
            const.ATTR_MESSAGE: data.message,
            const.ATTR_WORKOUT_TYPE: data.workout_type,
            const.ATTR_CAPABILITY: str(self.coordinator.monitor.capability),
            const.ATTR_WORKOUT_MULTIPLIERS: RewardEngine.get_multipliers(),
        }


class DailyUsageSensor(EarnedAccessCoordinatorEntity, SensorEntity):
    """Sensor for the quota remaining today."""

    _attr_device_class = SensorDeviceClass.DURATION
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfTime.SECONDS
    _attr_icon = "mdi:timer-sand"

    def __init__(
        self, coordinator: EarnedAccessDataCoordinator, entry: ConfigEntry
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, const.SENSOR_KEY_DAILY_USAGE)

    @property
    def native_value(self) -> int | None:
        """Return remaining seconds today."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.today.remaining_seconds

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return today's usage."""
        data = self.coordinator.data
        if data is None:
            return {}
        today = data.today
        return {
            const.ATTR_DATE_KEY: today.date_key,
            const.ATTR_EARNED_SECONDS: today.earned_seconds,
            const.ATTR_CONSUMED_SECONDS: today.consumed_seconds,
            const.ATTR_CAP_SECONDS: today.cap_seconds,
            const.ATTR_HAS_REACHED_CAP: today.has_reached_cap,
            const.ATTR_CAP_PROGRESS: today.cap_progress,
            const.ATTR_PLAN_TIER: today.plan_tier,
        }


class WorkoutStreakSensor(EarnedAccessCoordinatorEntity, SensorEntity):
    """Sensor for the current daily workout streak."""

    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfTime.DAYS
    _attr_icon = "mdi:fire"

    def __init__(
        self, coordinator: EarnedAccessDataCoordinator, entry: ConfigEntry
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, const.SENSOR_KEY_WORKOUT_STREAK)

    @property
    def native_value(self) -> int | None:
        """Return the active streak in days."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.workouts.current_streak

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return streak records, totals and the latest workouts."""
        data = self.coordinator.data
        if data is None:
            return {}
        workouts = data.workouts
        return {
            const.ATTR_BEST_STREAK: workouts.best_streak,
            const.ATTR_TOTAL_WORKOUTS: workouts.total_workouts,
            const.ATTR_TOTAL_EARNED_SECONDS: workouts.total_earned_seconds,
            const.ATTR_LAST_WORKOUT_DATE: workouts.last_workout_date,
            const.ATTR_TODAY_COMPLETED: workouts.today_completed,
            const.ATTR_MOST_POPULAR_WORKOUT: workouts.most_popular_workout,
            const.ATTR_RECENT_WORKOUTS: [
                {
                    **record.to_dict(),
                    const.ATTR_DESCRIPTION: record.description,
                }
                for record in workouts.recent
            ],
        }
