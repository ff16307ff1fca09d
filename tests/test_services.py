"""Tests for Earned Access services.

Each service is called through the service registry with blocking=True and
the published coordinator data is checked afterwards.
"""

# pylint: disable=redefined-outer-name  # Pytest fixtures shadow names

from typing import Any

import pytest
import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.earned_access import const, services
from tests.conftest import TEST_TARGETS
from tests.helpers import get_coordinator, setup_integration


@pytest.fixture
async def init_integration(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> ConfigEntry:
    """Set up the integration for service tests."""
    return await setup_integration(hass, mock_config_entry)


async def _call(hass: HomeAssistant, service: str, data: dict[str, Any] | None = None) -> None:
    await hass.services.async_call(const.DOMAIN, service, data or {}, blocking=True)
    await hass.async_block_till_done()


async def _earn(hass: HomeAssistant, units: int = 20) -> None:
    await _call(
        hass,
        const.SERVICE_START_WORK,
        {const.FIELD_WORKOUT_TYPE: "push-ups", const.FIELD_UNITS: units},
    )
    await _call(hass, const.SERVICE_COMPLETE_WORK, {const.FIELD_UNITS_COMPLETED: units})


async def test_start_work(hass: HomeAssistant, init_integration: ConfigEntry) -> None:
    """Test start_work moves to earning and keeps everything blocked."""
    await _call(
        hass,
        const.SERVICE_START_WORK,
        {const.FIELD_WORKOUT_TYPE: "Plank", const.FIELD_UNITS: "3"},
    )

    data = get_coordinator(hass, init_integration).data
    assert data.state == const.ACCESS_STATE_EARNING
    assert data.workout_type == "plank"
    assert data.blocked_targets == frozenset(TEST_TARGETS)


async def test_complete_work_unlocks(
    hass: HomeAssistant, init_integration: ConfigEntry
) -> None:
    """Test completing a session unlocks every target."""
    await _earn(hass)

    data = get_coordinator(hass, init_integration).data
    assert data.state == const.ACCESS_STATE_UNLOCKED
    assert data.accessible_targets == frozenset(TEST_TARGETS)
    assert data.blocked_targets == frozenset()
    assert 595 <= data.unlock_time_remaining <= 600
    assert data.today.earned_seconds == 600
    assert data.message is None


async def test_cancel_work(hass: HomeAssistant, init_integration: ConfigEntry) -> None:
    """Test cancelling returns to locked."""
    await _call(
        hass,
        const.SERVICE_START_WORK,
        {const.FIELD_WORKOUT_TYPE: "squats", const.FIELD_UNITS: 10},
    )
    await _call(hass, const.SERVICE_CANCEL_WORK)

    data = get_coordinator(hass, init_integration).data
    assert data.state == const.ACCESS_STATE_LOCKED
    assert data.message == const.MESSAGE_LOCKED


async def test_lock(hass: HomeAssistant, init_integration: ConfigEntry) -> None:
    """Test a manual lock discards the unlocked window."""
    await _earn(hass)
    await _call(hass, const.SERVICE_LOCK)

    data = get_coordinator(hass, init_integration).data
    assert data.state == const.ACCESS_STATE_LOCKED
    assert data.accessible_targets == frozenset()
    assert data.today.earned_seconds == 600


async def test_record_usage(hass: HomeAssistant, init_integration: ConfigEntry) -> None:
    """Test usage is deducted from today's quota."""
    await _earn(hass)
    await _call(hass, const.SERVICE_RECORD_USAGE, {const.FIELD_SECONDS: 150})

    today = get_coordinator(hass, init_integration).data.today
    assert today.consumed_seconds == 150
    assert today.remaining_seconds == 450


async def test_record_usage_over_quota(
    hass: HomeAssistant, init_integration: ConfigEntry
) -> None:
    """Test over-consumption raises a translated error and records nothing."""
    await _earn(hass)

    with pytest.raises(HomeAssistantError) as exc_info:
        await _call(hass, const.SERVICE_RECORD_USAGE, {const.FIELD_SECONDS: 601})

    assert exc_info.value.translation_key == const.TRANS_KEY_ERROR_INSUFFICIENT_QUOTA
    assert exc_info.value.translation_placeholders == {
        "requested": "601",
        "remaining": "600",
    }
    assert get_coordinator(hass, init_integration).data.today.consumed_seconds == 0


async def test_cancel_while_locked_raises(
    hass: HomeAssistant, init_integration: ConfigEntry
) -> None:
    """Test a rejected transition raises and leaves the state alone."""
    with pytest.raises(HomeAssistantError) as exc_info:
        await _call(hass, const.SERVICE_CANCEL_WORK)

    assert exc_info.value.translation_key == const.TRANS_KEY_ERROR_INVALID_TRANSITION
    assert exc_info.value.translation_placeholders == {
        "action": const.ACTION_CANCEL_WORK,
        "state": const.ACCESS_STATE_LOCKED,
        "reason": const.REASON_NOT_EARNING,
    }
    assert get_coordinator(hass, init_integration).session.state.name == (
        const.ACCESS_STATE_LOCKED
    )


async def test_start_while_earning_raises(
    hass: HomeAssistant, init_integration: ConfigEntry
) -> None:
    """Test a second start_work is rejected."""
    data = {const.FIELD_WORKOUT_TYPE: "squats", const.FIELD_UNITS: 10}
    await _call(hass, const.SERVICE_START_WORK, data)

    with pytest.raises(HomeAssistantError):
        await _call(hass, const.SERVICE_START_WORK, data)

    assert get_coordinator(hass, init_integration).data.workout_type == "squats"


async def test_complete_with_zero_units_raises(
    hass: HomeAssistant, init_integration: ConfigEntry
) -> None:
    """Test completing with nothing earned keeps the session running."""
    await _call(
        hass,
        const.SERVICE_START_WORK,
        {const.FIELD_WORKOUT_TYPE: "squats", const.FIELD_UNITS: 10},
    )

    with pytest.raises(HomeAssistantError) as exc_info:
        await _call(hass, const.SERVICE_COMPLETE_WORK, {const.FIELD_UNITS_COMPLETED: 0})

    assert exc_info.value.translation_placeholders["reason"] == (
        const.REASON_NOTHING_EARNED
    )
    assert get_coordinator(hass, init_integration).data.state == (
        const.ACCESS_STATE_EARNING
    )


@pytest.mark.parametrize(
    "data",
    [
        {const.FIELD_WORKOUT_TYPE: "yoga", const.FIELD_UNITS: 10},
        {const.FIELD_WORKOUT_TYPE: "squats", const.FIELD_UNITS: -1},
        {const.FIELD_WORKOUT_TYPE: "squats"},
    ],
)
async def test_start_work_schema(
    hass: HomeAssistant, init_integration: ConfigEntry, data: dict[str, Any]
) -> None:
    """Test invalid service data is refused by the schema."""
    with pytest.raises((vol.Invalid, HomeAssistantError)):
        await _call(hass, const.SERVICE_START_WORK, data)

    assert get_coordinator(hass, init_integration).data.state == (
        const.ACCESS_STATE_LOCKED
    )


async def test_set_plan_tier(hass: HomeAssistant, init_integration: ConfigEntry) -> None:
    """Test a plan change updates today's cap and the entry options."""
    await _call(
        hass, const.SERVICE_SET_PLAN_TIER, {const.FIELD_PLAN_TIER: const.PLAN_TIER_PRO}
    )

    coordinator = get_coordinator(hass, init_integration)
    assert coordinator.session.plan_tier == const.PLAN_TIER_PRO
    assert coordinator.data.today.cap_seconds == 10800
    assert init_integration.options[const.CONF_PLAN_TIER] == const.PLAN_TIER_PRO


async def test_services_without_entry(hass: HomeAssistant) -> None:
    """Test the coordinator lookup fails cleanly when nothing is loaded."""
    with pytest.raises(HomeAssistantError):
        services.get_coordinator(hass)


async def test_calculate_reward(hass: HomeAssistant, init_integration: ConfigEntry) -> None:
    """Test the reward calculation returns the units needed for a target time."""
    response = await hass.services.async_call(
        const.DOMAIN,
        const.SERVICE_CALCULATE_REWARD,
        {const.FIELD_WORKOUT_TYPE: "Plank", const.FIELD_TARGET_MINUTES: 10},
        blocking=True,
        return_response=True,
    )

    assert response == {
        const.FIELD_WORKOUT_TYPE: "plank",
        const.RESPONSE_MULTIPLIER: 1.5,
        const.RESPONSE_TARGET_SECONDS: 600,
        const.RESPONSE_REQUIRED_UNITS: 14,
        const.RESPONSE_EARNED_SECONDS: 630,
        const.RESPONSE_DESCRIPTION: "14 reps = 11 min unlock",
    }
    assert get_coordinator(hass, init_integration).data.state == (
        const.ACCESS_STATE_LOCKED
    )


async def test_calculate_reward_default_target(
    hass: HomeAssistant, init_integration: ConfigEntry
) -> None:
    """Test the target time defaults to ten minutes."""
    response = await hass.services.async_call(
        const.DOMAIN,
        const.SERVICE_CALCULATE_REWARD,
        {const.FIELD_WORKOUT_TYPE: "push-ups"},
        blocking=True,
        return_response=True,
    )

    assert response is not None
    assert response[const.RESPONSE_REQUIRED_UNITS] == 20
    assert response[const.RESPONSE_DESCRIPTION] == "20 reps = 10 min unlock"


async def test_calculate_reward_schema(
    hass: HomeAssistant, init_integration: ConfigEntry
) -> None:
    """Test unknown workouts and empty targets are refused."""
    for data in (
        {const.FIELD_WORKOUT_TYPE: "yoga"},
        {const.FIELD_WORKOUT_TYPE: "squats", const.FIELD_TARGET_MINUTES: 0},
    ):
        with pytest.raises((vol.Invalid, HomeAssistantError)):
            await hass.services.async_call(
                const.DOMAIN,
                const.SERVICE_CALCULATE_REWARD,
                data,
                blocking=True,
                return_response=True,
            )
