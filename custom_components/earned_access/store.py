# File: store.py
"""Handles persistent storage of the usage ledger for Earned Access.

Uses Home Assistant's Storage helper to keep the daily usage ledger across
restarts. Access state is never stored: after a restart the session starts
Locked with the persisted ledger.

EarnedAccessStore is the PersistenceAdapter used by SessionCoordinator. The
core calls load()/save() synchronously, so the store keeps an in-memory copy:
async_initialize() fills it at setup and save() schedules a delayed write on
the event loop.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from . import const
from .engines.errors import PersistenceFailureError

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import UsageLedgerSnapshot


class EarnedAccessStore:
    """Persistence adapter backed by Home Assistant's Store API."""

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: UsageLedgerSnapshot | None = None
        self._load_error: str | None = None

    async def async_initialize(self) -> None:
        """Load the stored snapshot into memory during startup."""
        const.LOGGER.debug("DEBUG: EarnedAccessStore: Loading data from storage")
        try:
            self._data = await self._store.async_load()
        except HomeAssistantError as err:
            self._load_error = str(err)
            const.LOGGER.error(
                "ERROR: Failed to load storage %s: %s", self._store.path, err
            )
            return

        if self._data is None:
            const.LOGGER.info("INFO: No existing storage found. Starting a new ledger")

    # -------------------------------------------------------------------------
    # PersistenceAdapter
    # -------------------------------------------------------------------------

    def load(self) -> UsageLedgerSnapshot | None:
        """Return the snapshot read by async_initialize().

        Raises:
            PersistenceFailureError: The storage file could not be read
        """
        if self._load_error is not None:
            raise PersistenceFailureError("load", self._load_error)
        return self._data

    def save(self, snapshot: UsageLedgerSnapshot) -> None:
        """Keep the snapshot in memory and schedule a delayed write.

        Raises:
            PersistenceFailureError: The snapshot is not JSON serializable
        """
        try:
            json.dumps(snapshot)
        except (TypeError, ValueError) as err:
            raise PersistenceFailureError("save", str(err)) from err

        self._data = snapshot
        self._load_error = None
        self._store.async_delay_save(self._data_to_save, const.STORAGE_SAVE_DELAY_SECONDS)

    def _data_to_save(self) -> dict[str, Any]:
        return dict(self._data or {})

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def async_save(self) -> None:
        """Write the in-memory snapshot immediately.

        Errors are logged but do not stop execution.
        """
        if self._data is None:
            return
        try:
            await self._store.async_save(self._data_to_save())
            const.LOGGER.debug("DEBUG: Ledger saved successfully to storage")
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to invalid data: %s", err
            )

    async def async_delete_storage(self) -> None:
        """Drop the in-memory snapshot and remove the storage file.

        Errors are logged but do not stop execution.
        """
        self._data = None
        self._load_error = None
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "INFO: Storage file removed successfully: %s", self._store.path
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
