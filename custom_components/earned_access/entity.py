"""Base entity classes for Earned Access integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import EarnedAccessDataCoordinator

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


def create_device_info(config_entry: ConfigEntry) -> DeviceInfo:
    """Create device info shared by all Earned Access entities.

    Args:
        config_entry: Config entry for this integration instance

    Returns:
        DeviceInfo dict for the access controller device
    """
    return DeviceInfo(
        identifiers={(const.DOMAIN, config_entry.entry_id)},
        name=config_entry.title,
        manufacturer=const.EARNED_ACCESS_TITLE,
        model="Access Controller",
        entry_type=DeviceEntryType.SERVICE,
    )


class EarnedAccessCoordinatorEntity(CoordinatorEntity[EarnedAccessDataCoordinator]):
    """Base entity class for Earned Access sensors with typed coordinator access."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: EarnedAccessDataCoordinator,
        entry: ConfigEntry,
        key: str,
    ) -> None:
        """Initialize the entity.

        Args:
            coordinator: EarnedAccessDataCoordinator instance for data access.
            entry: ConfigEntry for this integration instance.
            key: Sensor key used for the unique id and translation key.
        """
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry.entry_id}_{key}"
        self._attr_translation_key = key
        self._attr_device_info = create_device_info(entry)

    @property
    def coordinator(self) -> EarnedAccessDataCoordinator:
        """Return typed coordinator.

        Uses object.__getattribute__ to access the private _coordinator attribute
        set by the parent CoordinatorEntity class.
        """
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: EarnedAccessDataCoordinator) -> None:
        """Set coordinator with proper typing."""
        object.__setattr__(self, "_coordinator", value)
