"""Persistence adapters for testing SessionCoordinator without Home Assistant."""

from __future__ import annotations

import copy
from typing import Any

from custom_components.earned_access.engines.errors import PersistenceFailureError


class FakePersistence:
    """In-memory PersistenceAdapter recording every save."""

    def __init__(self, snapshot: dict[str, Any] | None = None) -> None:
        """Initialize with an optional stored snapshot."""
        self.snapshot = copy.deepcopy(snapshot)
        self.saves: list[dict[str, Any]] = []

    def load(self) -> dict[str, Any] | None:
        """Return the stored snapshot."""
        return copy.deepcopy(self.snapshot)

    def save(self, snapshot: dict[str, Any]) -> None:
        """Store a copy of the snapshot."""
        self.snapshot = copy.deepcopy(snapshot)
        self.saves.append(self.snapshot)


class FailingPersistence(FakePersistence):
    """PersistenceAdapter whose saves fail until `fail_saves` is cleared."""

    def __init__(
        self,
        snapshot: dict[str, Any] | None = None,
        fail_saves: bool = True,
        fail_load: bool = False,
    ) -> None:
        """Initialize the failing adapter."""
        super().__init__(snapshot)
        self.fail_saves = fail_saves
        self.fail_load = fail_load
        self.failed_saves = 0

    def load(self) -> dict[str, Any] | None:
        """Fail or return the stored snapshot."""
        if self.fail_load:
            raise OSError("disk unavailable")
        return super().load()

    def save(self, snapshot: dict[str, Any]) -> None:
        """Fail or store the snapshot."""
        if self.fail_saves:
            self.failed_saves += 1
            raise PersistenceFailureError("save", "disk full")
        super().save(snapshot)
