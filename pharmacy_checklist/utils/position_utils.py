# File: utils/position_utils.py
"""Responsibility / position name normalization.

Tasks list responsibilities either as display strings ("Pharmacist
(Primary)") or as kebab-case slugs ("pharmacist-primary"), and completion
rows carry the completing position's display name. Everything that compares
the two goes through these helpers.

Functions:
    - responsibility_slug: kebab-case key for any position/responsibility
    - responsibility_variants: slug plus its trailing "-s" plural twin
    - responsibilities_match: whether two names refer to the same position
"""

from __future__ import annotations

import re

_PUNCTUATION_RE = re.compile(r"[()/]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

# Trailing plural marker used in stored slugs, e.g. "pharmacy-assistant-s"
PLURAL_MARKER = "-s"


def responsibility_slug(name: str | None) -> str:
    """Return the kebab-case key for a position or responsibility name.

    Example:
        >>> responsibility_slug("Pharmacist (Primary)")
        'pharmacist-primary'
        >>> responsibility_slug("Pharmacy Assistant/s")
        'pharmacy-assistant-s'
    """
    if not name:
        return ""
    value = _PUNCTUATION_RE.sub(" ", name.strip().lower())
    return _NON_ALNUM_RE.sub("-", value).strip("-")


def responsibility_variants(name: str | None) -> frozenset[str]:
    """Return every slug form a responsibility may be stored under."""
    slug = responsibility_slug(name)
    if not slug:
        return frozenset()
    if slug.endswith(PLURAL_MARKER):
        return frozenset({slug, slug[: -len(PLURAL_MARKER)]})
    return frozenset({slug, f"{slug}{PLURAL_MARKER}"})


def responsibilities_match(left: str | None, right: str | None) -> bool:
    """Check whether two position/responsibility names are the same position."""
    if not left or not right:
        return False
    return responsibility_slug(right) in responsibility_variants(left)
