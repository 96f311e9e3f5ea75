"""
Display name parsing for directory users missing structured names.
"""

from __future__ import annotations


def parse_display_name(display_name: str | None) -> tuple[str, str]:
    """
    Split a display name into (given_name, family_name).

    Handles the common formats:
    - "First Last"
    - "Last, First" (and "Last, First Middle")
    - "First Middle Last" (everything but the last word is the given name)
    - A single name, treated as the given name

    Args:
        display_name: Display name to split

    Returns:
        Tuple of (given_name, family_name); empty strings for missing parts
    """
    if not display_name or not display_name.strip():
        return "", ""

    trimmed = display_name.strip()

    if "," in trimmed:
        parts = [p.strip() for p in trimmed.split(",")]
        family_name = parts[0]
        given_name = parts[1] if len(parts) > 1 else ""
        return given_name, family_name

    words = trimmed.split()
    if len(words) == 1:
        return words[0], ""

    return " ".join(words[:-1]), words[-1]
