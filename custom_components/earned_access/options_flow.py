# File: options_flow.py
"""Options flow for the Earned Access integration.

Edits targets, plan tier, tick interval and monitor capability. Saving the
options triggers the entry update listener, which applies them to the running
coordinator; only a monitor capability change reloads the entry.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries

from . import const
from . import flow_helpers as fh


class EarnedAccessOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for editing Earned Access settings."""

    def __init__(self, _config_entry: config_entries.ConfigEntry) -> None:
        """Initialize the options flow."""
        self._entry_options: dict[str, Any] = {}

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Show and save the settings form."""
        self._entry_options = dict(self.config_entry.options)
        errors: dict[str, str] = {}

        if user_input is not None:
            errors = fh.validate_settings_inputs(user_input)
            if not errors:
                self._entry_options.update(
                    fh.build_settings_data(user_input, advanced=True)
                )
                const.LOGGER.debug(
                    "DEBUG: Saving options: %s", self._entry_options
                )
                return self.async_create_entry(title="", data=self._entry_options)

        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT,
            data_schema=fh.build_settings_schema(
                user_input or self._entry_options, advanced=True
            ),
            errors=errors,
        )
