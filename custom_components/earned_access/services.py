# File: services.py
"""Defines custom services for the Earned Access integration.

These services expose every SessionCoordinator command to scripts and
automations. A rejected command raises HomeAssistantError with a translated
message and leaves the access state unchanged.

calculate_reward answers with a response instead: the units of a workout
needed for a target unlock time, computed by RewardEngine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import voluptuous as vol
from homeassistant.core import SupportsResponse
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .engines.reward_engine import RewardEngine
from .utils.dt_utils import dt_format_duration

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse

    from .coordinator import EarnedAccessDataCoordinator

# --- Service Schemas ---
START_WORK_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_WORKOUT_TYPE): vol.All(
            cv.string, vol.Lower, vol.In(const.WORKOUT_TYPES)
        ),
        vol.Required(const.FIELD_UNITS): vol.All(vol.Coerce(int), vol.Range(min=0)),
    }
)

CANCEL_WORK_SCHEMA = vol.Schema({})

COMPLETE_WORK_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_UNITS_COMPLETED): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
    }
)

LOCK_SCHEMA = vol.Schema({})

RECORD_USAGE_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_SECONDS): vol.All(vol.Coerce(int), vol.Range(min=0)),
    }
)

SET_PLAN_TIER_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_PLAN_TIER): vol.All(
            cv.string, vol.Lower, vol.In(const.PLAN_TIERS)
        ),
    }
)

CALCULATE_REWARD_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_WORKOUT_TYPE): vol.All(
            cv.string, vol.Lower, vol.In(const.WORKOUT_TYPES)
        ),
        vol.Optional(
            const.FIELD_TARGET_MINUTES, default=const.DEFAULT_TARGET_MINUTES
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
    }
)


def get_coordinator(hass: HomeAssistant) -> EarnedAccessDataCoordinator:
    """Return the coordinator of the (single) loaded entry.

    Raises:
        HomeAssistantError: No entry is loaded
    """
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        raise HomeAssistantError(const.MSG_NO_ENTRY_FOUND)
    entry_data = next(iter(domain_entries.values()))
    return entry_data[const.COORDINATOR]


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Earned Access services."""

    async def handle_start_work(call: ServiceCall) -> None:
        """Handle starting a work session."""
        coordinator = get_coordinator(hass)
        workout_type = call.data[const.FIELD_WORKOUT_TYPE]
        units = call.data[const.FIELD_UNITS]

        coordinator.async_start_work(workout_type, units)
        const.LOGGER.info(
            "INFO: Work session started: %s x %s", units, workout_type
        )

    async def handle_cancel_work(call: ServiceCall) -> None:
        """Handle cancelling the running work session."""
        coordinator = get_coordinator(hass)
        coordinator.async_cancel_work()
        const.LOGGER.info("INFO: Work session cancelled")

    async def handle_complete_work(call: ServiceCall) -> None:
        """Handle completing the running work session."""
        coordinator = get_coordinator(hass)
        units_completed = call.data[const.FIELD_UNITS_COMPLETED]

        grant = coordinator.async_complete_work(units_completed)
        const.LOGGER.info(
            "INFO: Work session completed: %s x %s earned %s",
            grant.units_completed,
            grant.workout_type,
            dt_format_duration(grant.earned_seconds),
        )

    async def handle_lock(call: ServiceCall) -> None:
        """Handle a manual lock."""
        coordinator = get_coordinator(hass)
        coordinator.async_lock()
        const.LOGGER.info("INFO: Access locked manually")

    async def handle_record_usage(call: ServiceCall) -> None:
        """Handle consumption reported by the host platform."""
        coordinator = get_coordinator(hass)
        seconds = call.data[const.FIELD_SECONDS]

        today = coordinator.async_record_usage(seconds)
        const.LOGGER.debug(
            "DEBUG: Recorded %ss of usage, %ss remaining today",
            seconds,
            today.remaining_seconds,
        )

    async def handle_set_plan_tier(call: ServiceCall) -> None:
        """Handle a plan tier change."""
        coordinator = get_coordinator(hass)
        plan_tier = call.data[const.FIELD_PLAN_TIER]

        today = coordinator.async_set_plan_tier(plan_tier)
        const.LOGGER.info(
            "INFO: Plan tier set to '%s' (cap=%ss)", plan_tier, today.cap_seconds
        )

    async def handle_calculate_reward(call: ServiceCall) -> ServiceResponse:
        """Handle a reward calculation for a target unlock time."""
        workout_type = call.data[const.FIELD_WORKOUT_TYPE]
        target_seconds = call.data[const.FIELD_TARGET_MINUTES] * 60

        required_units = RewardEngine.calculate_required_units(
            workout_type, target_seconds
        )
        return {
            const.FIELD_WORKOUT_TYPE: workout_type,
            const.RESPONSE_MULTIPLIER: float(RewardEngine.multiplier(workout_type)),
            const.RESPONSE_TARGET_SECONDS: target_seconds,
            const.RESPONSE_REQUIRED_UNITS: required_units,
            const.RESPONSE_EARNED_SECONDS: RewardEngine.earn(
                workout_type, required_units
            ),
            const.RESPONSE_DESCRIPTION: RewardEngine.reward_description(
                workout_type, required_units
            ),
        }

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_START_WORK,
        handle_start_work,
        schema=START_WORK_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CANCEL_WORK,
        handle_cancel_work,
        schema=CANCEL_WORK_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_COMPLETE_WORK,
        handle_complete_work,
        schema=COMPLETE_WORK_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_LOCK,
        handle_lock,
        schema=LOCK_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RECORD_USAGE,
        handle_record_usage,
        schema=RECORD_USAGE_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_PLAN_TIER,
        handle_set_plan_tier,
        schema=SET_PLAN_TIER_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CALCULATE_REWARD,
        handle_calculate_reward,
        schema=CALCULATE_REWARD_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    const.LOGGER.info("INFO: Earned Access services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Earned Access services when unloading the integration."""
    services = [
        const.SERVICE_START_WORK,
        const.SERVICE_CANCEL_WORK,
        const.SERVICE_COMPLETE_WORK,
        const.SERVICE_LOCK,
        const.SERVICE_RECORD_USAGE,
        const.SERVICE_SET_PLAN_TIER,
        const.SERVICE_CALCULATE_REWARD,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Earned Access services have been unregistered")
