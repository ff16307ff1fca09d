# File: flow_helpers.py
"""Schema builders and validators shared by the config and options flows.

Both flows edit the same settings: the protected targets and the plan tier.
The options flow additionally edits the tick interval and the monitor
capability.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.helpers import selector

from . import const
from .utils.math_utils import parse_target_ids


def build_settings_schema(
    default: dict[str, Any] | None = None, advanced: bool = False
) -> vol.Schema:
    """Build the settings schema; `advanced` adds tick interval and monitor capability."""
    default = default or {}
    default_targets = "\n".join(parse_target_ids(default.get(const.CONF_TARGETS)))
    default_plan_tier = default.get(const.CONF_PLAN_TIER, const.DEFAULT_PLAN_TIER)

    fields: dict[Any, Any] = {
        vol.Required(
            const.CONF_TARGETS, default=default_targets
        ): selector.TextSelector(
            selector.TextSelectorConfig(
                multiline=True,
            )
        ),
        vol.Required(
            const.CONF_PLAN_TIER, default=default_plan_tier
        ): selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=const.PLAN_TIERS,
                mode=selector.SelectSelectorMode.DROPDOWN,
                multiple=False,
                translation_key=const.CONF_PLAN_TIER,
            )
        ),
    }

    if advanced:
        default_interval = default.get(
            const.CONF_TICK_INTERVAL, const.DEFAULT_TICK_INTERVAL
        )
        default_capability = default.get(
            const.CONF_MONITOR_CAPABILITY, const.DEFAULT_MONITOR_CAPABILITY
        )
        fields[
            vol.Required(const.CONF_TICK_INTERVAL, default=default_interval)
        ] = selector.NumberSelector(
            selector.NumberSelectorConfig(
                mode=selector.NumberSelectorMode.BOX,
                min=const.MIN_TICK_INTERVAL,
                max=const.MAX_TICK_INTERVAL,
                step=1,
                unit_of_measurement="s",
            )
        )
        fields[
            vol.Required(const.CONF_MONITOR_CAPABILITY, default=default_capability)
        ] = selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=const.MONITOR_CAPABILITIES,
                mode=selector.SelectSelectorMode.DROPDOWN,
                multiple=False,
                translation_key=const.CONF_MONITOR_CAPABILITY,
            )
        )

    return vol.Schema(fields)


def validate_settings_inputs(user_input: dict[str, Any]) -> dict[str, str]:
    """Validate settings inputs.

    Args:
        user_input: Dictionary containing user inputs from the form.

    Returns:
        Dictionary of errors (empty if validation passes).
    """
    errors: dict[str, str] = {}
    if not parse_target_ids(user_input.get(const.CONF_TARGETS)):
        errors[const.CONF_TARGETS] = const.TRANS_KEY_ERROR_NO_TARGETS
    return errors


def build_settings_data(
    user_input: dict[str, Any], advanced: bool = False
) -> dict[str, Any]:
    """Build the entry options from validated form input.

    Targets are stored as an ordered list of unique identifiers.
    """
    data: dict[str, Any] = {
        const.CONF_TARGETS: parse_target_ids(user_input.get(const.CONF_TARGETS)),
        const.CONF_PLAN_TIER: user_input.get(
            const.CONF_PLAN_TIER, const.DEFAULT_PLAN_TIER
        ),
    }
    if advanced:
        data[const.CONF_TICK_INTERVAL] = int(
            user_input.get(const.CONF_TICK_INTERVAL, const.DEFAULT_TICK_INTERVAL)
        )
        data[const.CONF_MONITOR_CAPABILITY] = user_input.get(
            const.CONF_MONITOR_CAPABILITY, const.DEFAULT_MONITOR_CAPABILITY
        )
    return data
