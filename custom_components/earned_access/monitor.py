# File: monitor.py
"""Launch monitoring for the Earned Access integration.

A MonitorAdapter delivers "target launch attempted at time T" signals to the
coordinator; the core never polls for them. What a platform can do beyond
observing launches is reported as a MonitorCapability so the host can decide
whether to shield a target natively. The access state machine ignores the
capability and always computes the same target sets.

EventBusMonitorAdapter is the Home Assistant implementation: any device or
automation reports a launch by firing `earned_access_launch_attempted` with a
`target_id` (and optionally an ISO `timestamp`). Timestamps are converted to
Home Assistant local time before they reach the session.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from homeassistant.core import Event, HomeAssistant, callback
from homeassistant.util import dt as dt_util

from . import const
from .utils.dt_utils import dt_parse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from datetime import datetime


class MonitorCapability(StrEnum):
    """What the launch monitor can do on the current platform."""

    NONE = const.MONITOR_CAPABILITY_NONE
    MONITORING_ONLY = const.MONITOR_CAPABILITY_MONITORING_ONLY
    ENFORCEMENT_AVAILABLE = const.MONITOR_CAPABILITY_ENFORCEMENT_AVAILABLE


@dataclass(frozen=True)
class LaunchAttempt:
    """A single observed launch of a target."""

    target_id: str
    timestamp: datetime


class MonitorAdapter(Protocol):
    """Source of launch attempts."""

    @property
    def capability(self) -> MonitorCapability:
        """Return what the monitor can do."""

    def observe_launch(self) -> AsyncIterator[LaunchAttempt]:
        """Yield launch attempts as they happen."""


class EventBusMonitorAdapter:
    """MonitorAdapter fed by Home Assistant bus events."""

    def __init__(
        self,
        hass: HomeAssistant,
        capability: MonitorCapability | str = MonitorCapability.MONITORING_ONLY,
    ) -> None:
        """Initialize the adapter.

        Args:
            hass: Home Assistant core object.
            capability: Capability reported to the coordinator.
        """
        self.hass = hass
        self._capability = MonitorCapability(capability)
        self._queue: asyncio.Queue[LaunchAttempt] = asyncio.Queue()
        self._unsub: Callable[[], None] | None = None

    @property
    def capability(self) -> MonitorCapability:
        """Return what the monitor can do."""
        return self._capability

    @callback
    def async_start(self) -> None:
        """Start listening for launch events."""
        if self._unsub is not None:
            return
        self._unsub = self.hass.bus.async_listen(
            const.EVENT_LAUNCH_ATTEMPTED, self._async_handle_event
        )
        const.LOGGER.debug(
            "DEBUG: Launch monitor started (capability=%s)", self._capability
        )

    @callback
    def async_stop(self) -> None:
        """Stop listening for launch events."""
        if self._unsub is not None:
            self._unsub()
            self._unsub = None
            const.LOGGER.debug("DEBUG: Launch monitor stopped")

    @callback
    def _async_handle_event(self, event: Event) -> None:
        """Queue a launch attempt from a bus event."""
        target_id = event.data.get(const.FIELD_TARGET_ID)
        if not isinstance(target_id, str) or not target_id.strip():
            const.LOGGER.warning(
                "WARNING: Ignoring launch event without target_id: %s", event.data
            )
            return

        timestamp = dt_util.as_local(event.time_fired)
        raw_timestamp = event.data.get(const.FIELD_TIMESTAMP)
        if raw_timestamp is not None:
            parsed = dt_parse(raw_timestamp)
            if parsed is None:
                const.LOGGER.warning(
                    "WARNING: Invalid launch timestamp '%s', using event time",
                    raw_timestamp,
                )
            else:
                timestamp = dt_util.as_local(parsed)

        self._queue.put_nowait(LaunchAttempt(target_id.strip(), timestamp))

    async def observe_launch(self) -> AsyncIterator[LaunchAttempt]:
        """Yield launch attempts as they are reported."""
        while True:
            yield await self._queue.get()
