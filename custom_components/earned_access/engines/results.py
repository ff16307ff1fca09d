"""Explicit command results for the Earned Access core.

Commands never raise for expected rejections. They return a CommandResult
carrying either a value or an EarnedAccessError, and callers branch on `ok`.

ARCHITECTURE: No Home Assistant dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from .errors import EarnedAccessError

_T = TypeVar("_T")


@dataclass(frozen=True)
class CommandResult(Generic[_T]):
    """Outcome of a command.

    Attributes:
        value: Command output on success (grant, usage, state), else None
        error: The rejection when the command did not apply, else None
    """

    value: _T | None = None
    error: EarnedAccessError | None = None

    @property
    def ok(self) -> bool:
        """Return True when the command applied."""
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> CommandResult:
        """Build a successful result."""
        return cls(value=value)

    @classmethod
    def failure(cls, error: EarnedAccessError) -> CommandResult:
        """Build a rejected result."""
        return cls(error=error)
