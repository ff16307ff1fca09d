# File: utils/__init__.py
"""Pure Python utilities for Earned Access.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed in this module.

Submodules:
    - dt_utils: Date keys, timezone normalization, whole-second arithmetic
    - math_utils: Decimal reward arithmetic, ratios, target list parsing

Usage:
    from . import dt_utils
    from .math_utils import floor_seconds
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
