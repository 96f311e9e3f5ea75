"""
Lookup key normalization for aligning directory users with shared contacts.

Both sides of a sync are joined on a single case-insensitive key derived
from the primary email address, falling back to the secondary address
(the user principal name) when no primary address is present.
"""

from __future__ import annotations


def lookup_key(primary: str | None, secondary: str | None = None) -> str:
    """
    Build the canonical lookup key for a record.

    Args:
        primary: Primary email address (may be empty or None)
        secondary: Fallback address, e.g. the user principal name

    Returns:
        Lowercased primary address if non-empty, otherwise the lowercased
        secondary address. Returns an empty string when both are empty;
        callers treat that as a degenerate record that cannot be matched.
    """
    value = primary or secondary or ""
    return value.lower()
