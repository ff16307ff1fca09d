"""Test helpers for Earned Access tests.

    from tests.helpers import FakePersistence, setup_integration, get_coordinator

See individual modules for full documentation:
- fakes.py: In-memory and failing persistence adapters for the core
- setup.py: Config entry setup, coordinator and entity id lookup for HA tests
"""

from tests.helpers.fakes import FailingPersistence, FakePersistence
from tests.helpers.setup import (
    ACCESS_STATE_KEY,
    DAILY_USAGE_KEY,
    WORKOUT_STREAK_KEY,
    get_coordinator,
    get_entity_id,
    setup_integration,
)

__all__ = [
    "ACCESS_STATE_KEY",
    "DAILY_USAGE_KEY",
    "FailingPersistence",
    "FakePersistence",
    "WORKOUT_STREAK_KEY",
    "get_coordinator",
    "get_entity_id",
    "setup_integration",
]
