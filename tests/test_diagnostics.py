"""Tests for Earned Access diagnostics."""

from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.earned_access import const
from custom_components.earned_access.diagnostics import (
    async_get_config_entry_diagnostics,
)
from tests.conftest import TEST_TARGETS
from tests.helpers import setup_integration


async def test_config_entry_diagnostics(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> None:
    """Test diagnostics expose state, targets and the ledger snapshot."""
    entry = await setup_integration(hass, mock_config_entry)
    await hass.services.async_call(
        const.DOMAIN,
        const.SERVICE_START_WORK,
        {const.FIELD_WORKOUT_TYPE: "squats", const.FIELD_UNITS: 10},
        blocking=True,
    )
    await hass.services.async_call(
        const.DOMAIN,
        const.SERVICE_COMPLETE_WORK,
        {const.FIELD_UNITS_COMPLETED: 10},
        blocking=True,
    )

    result = await async_get_config_entry_diagnostics(hass, entry)

    assert result["state"] == const.ACCESS_STATE_UNLOCKED
    assert result["targets"] == sorted(TEST_TARGETS)
    assert result[const.ATTR_ACCESSIBLE_TARGETS] == sorted(TEST_TARGETS)
    assert result[const.ATTR_BLOCKED_TARGETS] == []
    assert result[const.ATTR_CAPABILITY] == const.MONITOR_CAPABILITY_MONITORING_ONLY
    assert result["persistence_pending"] is False
    assert result["options"][const.CONF_PLAN_TIER] == const.PLAN_TIER_FREE

    ledger = result["ledger"]
    assert ledger[const.DATA_SCHEMA_VERSION] == const.SCHEMA_VERSION_LEDGER
    assert ledger[const.DATA_CURRENT][const.DATA_DAY_EARNED_SECONDS] == 300
    workouts = ledger[const.DATA_WORKOUTS]
    assert workouts[const.DATA_WORKOUT_TOTAL_WORKOUTS] == 1
    assert workouts[const.DATA_WORKOUT_RECORDS][0][const.DATA_RECORD_WORKOUT_TYPE] == (
        "squats"
    )
