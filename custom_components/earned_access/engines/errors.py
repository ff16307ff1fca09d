"""Error taxonomy for the Earned Access core.

Two families live here:

- Result errors (InvalidTransitionError, InsufficientQuotaError) describe a
  rejected command. They are RETURNED inside a CommandResult and never raised;
  the state is left unchanged.
- Precondition errors (UnknownWorkoutTypeError, PersistenceFailureError) are
  raised. Unknown workout types fail fast; persistence failures are raised by
  adapters and caught by SessionCoordinator.

Every error carries a translation_key and translation_placeholders so the Home
Assistant layer can re-raise it as a translated HomeAssistantError.

ARCHITECTURE: No Home Assistant dependencies.
"""

from __future__ import annotations

from .. import const


class EarnedAccessError(Exception):
    """Base class for all Earned Access errors."""

    translation_key: str = ""

    @property
    def translation_placeholders(self) -> dict[str, str]:
        """Return placeholders for the translated message."""
        return {}


class InvalidTransitionError(EarnedAccessError):
    """A command is not valid in the current access state.

    Attributes:
        current_state: Name of the state the command was rejected in
        action: The rejected command (start_work, cancel_work, complete_work)
        reason: Short machine reason (already_earning, not_earning, nothing_earned)
    """

    translation_key = const.TRANS_KEY_ERROR_INVALID_TRANSITION

    def __init__(self, current_state: str, action: str, reason: str) -> None:
        """Initialize InvalidTransitionError."""
        self.current_state = current_state
        self.action = action
        self.reason = reason
        super().__init__(f"Cannot {action} while {current_state}: {reason}")

    @property
    def translation_placeholders(self) -> dict[str, str]:
        """Return placeholders for the translated message."""
        return {
            "action": self.action,
            "state": self.current_state,
            "reason": self.reason,
        }


class InsufficientQuotaError(EarnedAccessError):
    """Consumption would exceed the remaining daily quota.

    Attributes:
        requested_seconds: Seconds the caller tried to consume
        remaining_seconds: Seconds left in today's quota
        shortfall: How many seconds are missing
    """

    translation_key = const.TRANS_KEY_ERROR_INSUFFICIENT_QUOTA

    def __init__(self, requested_seconds: int, remaining_seconds: int) -> None:
        """Initialize InsufficientQuotaError."""
        self.requested_seconds = requested_seconds
        self.remaining_seconds = remaining_seconds
        self.shortfall = requested_seconds - remaining_seconds
        super().__init__(
            f"Insufficient quota: requested={requested_seconds}s, "
            f"remaining={remaining_seconds}s, shortfall={self.shortfall}s"
        )

    @property
    def translation_placeholders(self) -> dict[str, str]:
        """Return placeholders for the translated message."""
        return {
            "requested": str(self.requested_seconds),
            "remaining": str(self.remaining_seconds),
        }


class UnknownWorkoutTypeError(EarnedAccessError, ValueError):
    """The workout type has no configured multiplier."""

    translation_key = const.TRANS_KEY_ERROR_UNKNOWN_WORKOUT_TYPE

    def __init__(self, workout_type: str) -> None:
        """Initialize UnknownWorkoutTypeError."""
        self.workout_type = workout_type
        super().__init__(f"Unknown workout type: {workout_type!r}")

    @property
    def translation_placeholders(self) -> dict[str, str]:
        """Return placeholders for the translated message."""
        return {
            "workout_type": self.workout_type,
            "known_types": ", ".join(const.WORKOUT_TYPES),
        }


class PersistenceFailureError(EarnedAccessError):
    """A persistence adapter could not load or save the ledger.

    Attributes:
        operation: "load" or "save"
        reason: Human readable cause
    """

    translation_key = const.TRANS_KEY_ERROR_PERSISTENCE_FAILURE

    def __init__(self, operation: str, reason: str) -> None:
        """Initialize PersistenceFailureError."""
        self.operation = operation
        self.reason = reason
        super().__init__(f"Persistence {operation} failed: {reason}")

    @property
    def translation_placeholders(self) -> dict[str, str]:
        """Return placeholders for the translated message."""
        return {"operation": self.operation, "reason": self.reason}
