# File: config_flow.py
"""Config flow for the Earned Access integration.

A single step collects the protected targets and the plan tier. Only one
instance is allowed: the usage ledger is per installation.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from . import flow_helpers as fh
from .options_flow import EarnedAccessOptionsFlowHandler


class EarnedAccessConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Earned Access."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Collect targets and plan tier."""
        if self._async_current_entries():
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_settings_inputs(user_input)
            if not errors:
                options = fh.build_settings_data(user_input)
                options[const.CONF_TICK_INTERVAL] = const.DEFAULT_TICK_INTERVAL
                options[const.CONF_MONITOR_CAPABILITY] = (
                    const.DEFAULT_MONITOR_CAPABILITY
                )
                const.LOGGER.info(
                    "INFO: Creating entry with %s targets on plan '%s'",
                    len(options[const.CONF_TARGETS]),
                    options[const.CONF_PLAN_TIER],
                )
                return self.async_create_entry(
                    title=const.EARNED_ACCESS_TITLE, data={}, options=options
                )

        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=fh.build_settings_schema(user_input),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> EarnedAccessOptionsFlowHandler:
        """Return the Options Flow."""
        return EarnedAccessOptionsFlowHandler(config_entry)
