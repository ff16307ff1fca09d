"""Reward Engine - Pure logic converting completed work into unlock seconds.

This engine provides stateless, pure Python functions for:
- Earned seconds for a workout: floor(units × 30 × multiplier)
- Multiplier lookup with case-insensitive type matching
- Reverse calculation (units needed for a target duration)
- Human readable reward descriptions

Arithmetic is done in Decimal so multipliers like 0.8 never drift
(7 × 30 × 0.8 is exactly 168, not 167.99999999999997).

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, Decimal

from .. import const
from ..utils.math_utils import floor_seconds, minutes_half_up, to_decimal
from .errors import UnknownWorkoutTypeError


class RewardEngine:
    """Pure logic engine for reward calculations.

    All methods are static - no instance state. `earn` is a pure function of
    its inputs and is monotonic non-decreasing in `units`.
    """

    @staticmethod
    def _normalize_type(workout_type: str) -> str:
        return workout_type.strip().lower()

    @staticmethod
    def is_known_type(workout_type: str) -> bool:
        """Return True when the workout type has a configured multiplier."""
        if not isinstance(workout_type, str):
            return False
        return RewardEngine._normalize_type(workout_type) in const.WORKOUT_MULTIPLIERS

    @staticmethod
    def multiplier(workout_type: str) -> Decimal:
        """Return the multiplier for a workout type.

        Raises:
            UnknownWorkoutTypeError: The type is not configured
        """
        if not RewardEngine.is_known_type(workout_type):
            raise UnknownWorkoutTypeError(str(workout_type))
        return to_decimal(
            const.WORKOUT_MULTIPLIERS[RewardEngine._normalize_type(workout_type)]
        )

    @staticmethod
    def get_multipliers() -> dict[str, float]:
        """Return a read-only copy of the multiplier table."""
        return {
            workout_type: float(value)
            for workout_type, value in const.WORKOUT_MULTIPLIERS.items()
        }

    @staticmethod
    def earn(workout_type: str, units: int) -> int:
        """Convert completed units into earned unlock seconds.

        Args:
            workout_type: Configured workout type (case-insensitive)
            units: Completed units (reps, or plank holds)

        Returns:
            floor(units × BASE_SECONDS_PER_UNIT × multiplier)

        Raises:
            UnknownWorkoutTypeError: The type is not configured
            ValueError: units is negative

        Examples:
            earn("push-ups", 20) → 600
            earn("plank", 3) → 135
            earn("jumping-jacks", 7) → 168
        """
        multiplier = RewardEngine.multiplier(workout_type)
        if units < 0:
            raise ValueError(f"units must be non-negative, got {units}")
        if units == 0:
            return 0
        return floor_seconds(units, const.BASE_SECONDS_PER_UNIT, multiplier)

    @staticmethod
    def calculate_required_units(workout_type: str, target_seconds: int) -> int:
        """Return the smallest unit count whose reward covers target_seconds.

        Returns 0 for non-positive targets.

        Example:
            calculate_required_units("push-ups", 600) → 20
            calculate_required_units("jumping-jacks", 600) → 25
        """
        multiplier = RewardEngine.multiplier(workout_type)
        if target_seconds <= 0:
            return 0

        per_unit = Decimal(const.BASE_SECONDS_PER_UNIT) * multiplier
        # Ceiling division, then step up past any floor() loss
        units = int(
            (Decimal(target_seconds) / per_unit).to_integral_value(rounding=ROUND_CEILING)
        )
        while RewardEngine.earn(workout_type, units) < target_seconds:
            units += 1
        return units

    @staticmethod
    def reward_description(workout_type: str, units: int) -> str:
        """Describe a reward, e.g. "20 reps = 10 min unlock".

        Minutes are rounded half up.
        """
        seconds = RewardEngine.earn(workout_type, units)
        return f"{units} reps = {minutes_half_up(seconds)} min unlock"
