# File: utils/math_utils.py
"""Math and parsing utilities for Earned Access.

Pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.

Functions:
    - to_decimal: Exact decimal conversion of multipliers
    - floor_seconds: units × base × multiplier, floored to whole seconds
    - minutes_half_up: Seconds to whole minutes, rounding half up
    - clamp: Bound a value to a range
    - calculate_ratio: Progress ratio in [0, 1]
    - parse_target_ids: Parse comma/newline separated target identifiers
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
import logging
import re

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

_TARGET_SEPARATORS = re.compile(r"[,\n;]+")


# ==============================================================================
# Reward Arithmetic
# ==============================================================================


def to_decimal(value: str | int | float | Decimal) -> Decimal:
    """Convert a multiplier to Decimal without binary float drift.

    Floats go through `str()` so 0.8 becomes Decimal("0.8"), not
    Decimal("0.8000000000000000444...").
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def floor_seconds(
    units: int,
    base_seconds: int,
    multiplier: str | int | float | Decimal,
) -> int:
    """Return floor(units × base_seconds × multiplier) as an int.

    Examples:
        floor_seconds(20, 30, "1.0") → 600
        floor_seconds(7, 30, "0.8") → 168
        floor_seconds(3, 30, "1.5") → 135
    """
    product = Decimal(units) * Decimal(base_seconds) * to_decimal(multiplier)
    return int(product.to_integral_value(rounding=ROUND_FLOOR))


def minutes_half_up(seconds: int) -> int:
    """Convert seconds to whole minutes, rounding half up.

    Examples:
        minutes_half_up(600) → 10
        minutes_half_up(90) → 2
        minutes_half_up(89) → 1
    """
    minutes = Decimal(seconds) / Decimal(60)
    return int(minutes.to_integral_value(rounding=ROUND_HALF_UP))


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(1.5, 0.0, 1.0) → 1.0
        clamp(-1, 0, 10) → 0
    """
    return max(min_val, min(value, max_val))


def calculate_ratio(current: int, total: int, precision: int = 4) -> float:
    """Return current/total clamped to [0, 1], or 0.0 when total <= 0."""
    if total <= 0:
        return 0.0
    return round(clamp(current / total, 0.0, 1.0), precision)


# ==============================================================================
# Target String Parsing
# ==============================================================================


def parse_target_ids(raw_input: str | list | tuple | set | frozenset | None) -> list[str]:
    """Parse target identifiers from any input type into an ordered unique list.

    Handles multiple input types:
    - None: Returns an empty list
    - list/tuple/set: Strips each element, drops empties
    - str: Splits on commas, semicolons or newlines

    Identifiers are opaque (bundle ids, package names, domains); only
    surrounding whitespace is removed and first-seen order is kept.

    Examples:
        parse_target_ids("com.a, com.b\\ncom.a") → ["com.a", "com.b"]
        parse_target_ids(["com.a", " ", "com.b"]) → ["com.a", "com.b"]
        parse_target_ids(None) → []
    """
    if not raw_input:
        return []

    if isinstance(raw_input, str):
        parts = _TARGET_SEPARATORS.split(raw_input)
    elif isinstance(raw_input, (list, tuple, set, frozenset)):
        parts = [str(part) for part in raw_input]
    else:
        _LOGGER.error("Unexpected target list type: %s", type(raw_input))
        return []

    seen: dict[str, None] = {}
    for part in parts:
        target_id = part.strip()
        if target_id:
            seen.setdefault(target_id, None)
    return list(seen)
