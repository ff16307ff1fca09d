"""Diagnostics support for Earned Access integration.

Exports the persisted ledger snapshot together with the transient access
state and the configured targets for troubleshooting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.util import dt as dt_util

from . import const

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .coordinator import EarnedAccessDataCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry.

    The ledger section is the same layout as the storage file, so it can be
    compared directly with earned_access_data.
    """
    coordinator: EarnedAccessDataCoordinator = hass.data[const.DOMAIN][
        entry.entry_id
    ][const.COORDINATOR]
    session = coordinator.session
    now = dt_util.now()

    return {
        "state": session.state.name,
        "targets": sorted(session.targets),
        const.ATTR_BLOCKED_TARGETS: sorted(session.blocked_targets(now)),
        const.ATTR_ACCESSIBLE_TARGETS: sorted(session.accessible_targets(now)),
        const.ATTR_CAPABILITY: str(coordinator.monitor.capability),
        "persistence_pending": session.persistence_pending,
        "options": dict(entry.options),
        "ledger": session.ledger_snapshot(),
    }
