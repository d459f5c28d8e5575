# File: utils/__init__.py
"""Pure Python utilities for the pharmacy checklist engine.

Submodules:
    - dt_utils: Date/time parsing, timezone handling, calendar anchors
    - position_utils: Responsibility / position name normalization

Usage:
    from . import dt_utils
    from .position_utils import responsibilities_match
"""

from . import dt_utils, position_utils

__all__ = ["dt_utils", "position_utils"]
