"""Shared fixtures for Earned Access tests."""

from typing import Any

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.earned_access.const import (
    CONF_MONITOR_CAPABILITY,
    CONF_PLAN_TIER,
    CONF_TARGETS,
    CONF_TICK_INTERVAL,
    DEFAULT_MONITOR_CAPABILITY,
    DEFAULT_TICK_INTERVAL,
    DOMAIN,
    EARNED_ACCESS_TITLE,
    PLAN_TIER_FREE,
)

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name

TEST_TARGETS = ["com.example.social", "com.example.video", "example.org"]


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry protecting TEST_TARGETS on the free plan."""
    return MockConfigEntry(
        domain=DOMAIN,
        title=EARNED_ACCESS_TITLE,
        data={},
        options={
            CONF_TARGETS: list(TEST_TARGETS),
            CONF_PLAN_TIER: PLAN_TIER_FREE,
            CONF_TICK_INTERVAL: DEFAULT_TICK_INTERVAL,
            CONF_MONITOR_CAPABILITY: DEFAULT_MONITOR_CAPABILITY,
        },
        entry_id="test_entry_id",
        unique_id="test_unique_id",
    )
