# File: __init__.py
"""Initialization file for the Earned Access integration.

Handles setting up the integration, including loading configuration entries,
initializing ledger storage, starting the launch monitor and preparing the
coordinator that drives the access state machine.

Key Features:
- Config entry setup and unload support.
- Coordinator initialization; the coordinator owns the clock.
- Launch monitor consumed by a background task.
- Storage management for the persisted usage ledger.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from . import const
from .coordinator import EarnedAccessDataCoordinator
from .monitor import EventBusMonitorAdapter
from .services import async_setup_services, async_unload_services
from .store import EarnedAccessStore
from .utils.dt_utils import set_default_timezone


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for Earned Access entry: %s", entry.entry_id)

    # Naive datetimes are read in the Home Assistant time zone
    set_default_timezone(dt_util.get_default_time_zone())

    # Load the persisted ledger before the session is built
    store = EarnedAccessStore(hass, const.STORAGE_KEY)
    await store.async_initialize()

    monitor = EventBusMonitorAdapter(
        hass,
        entry.options.get(
            const.CONF_MONITOR_CAPABILITY, const.DEFAULT_MONITOR_CAPABILITY
        ),
    )

    coordinator = EarnedAccessDataCoordinator(hass, entry, store, monitor)

    # A plan tier edited while the entry was unloaded wins over the stored one
    plan_tier = entry.options.get(const.CONF_PLAN_TIER, const.DEFAULT_PLAN_TIER)
    if plan_tier != coordinator.session.plan_tier:
        coordinator.session.set_plan_tier(plan_tier, dt_util.now())

    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
        const.MONITOR: monitor,
    }

    # Set up services required by the integration.
    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    # Launch attempts are consumed by a single background task
    monitor.async_start()
    entry.async_on_unload(monitor.async_stop)
    entry.async_create_background_task(
        hass,
        coordinator.async_consume_launches(),
        f"{const.DOMAIN}_launch_monitor",
    )

    entry.async_on_unload(entry.add_update_listener(async_update_options))

    const.LOGGER.info("INFO: Earned Access setup complete for entry: %s", entry.entry_id)
    return True


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Apply edited options; a monitor capability change needs a reload."""
    coordinator: EarnedAccessDataCoordinator = hass.data[const.DOMAIN][
        entry.entry_id
    ][const.COORDINATOR]

    capability = entry.options.get(
        const.CONF_MONITOR_CAPABILITY, const.DEFAULT_MONITOR_CAPABILITY
    )
    if capability != coordinator.monitor.capability:
        const.LOGGER.info("INFO: Monitor capability changed, reloading entry")
        await hass.config_entries.async_reload(entry.entry_id)
        return

    coordinator.async_apply_options()


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Earned Access entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        entry_data = hass.data[const.DOMAIN].pop(entry.entry_id)
        store: EarnedAccessStore = entry_data[const.STORE]
        await store.async_save()

        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry."""
    const.LOGGER.info("INFO: Removing Earned Access entry: %s", entry.entry_id)
    store = EarnedAccessStore(hass, const.STORAGE_KEY)
    await store.async_delete_storage()
    const.LOGGER.info("INFO: Earned Access ledger cleared: %s", entry.entry_id)
