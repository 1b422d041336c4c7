"""
Volume number parsing and gap detection.

Volume labels are free text ("1", "Vol. 07", "#12", "1-3"); only the first
run of digits is treated as the ordinal.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

DIGITS_PATTERN = re.compile(r"[0-9]+")

# Larger ordinals are catalog numbers (ISBNs, UPCs), not volumes
MAX_VOLUME_NUMBER = 9999


def extract_volume_number(label: Any) -> int | None:
    """Extract the ordinal from a volume label.

    Examples:
        "Vol. 07" -> 7, "#12" -> 12, "1-3" -> 1, "Special Edition" -> None

    Returns:
        The first run of decimal digits as an int, or None if there is none
    """
    if not label or not isinstance(label, str):
        return None
    match = DIGITS_PATTERN.search(label)
    if match is None:
        return None
    return int(match.group(0))


def find_missing_volumes(volumes: Iterable[int]) -> list[str]:
    """List the ordinals missing between the lowest and highest owned volume.

    Only the observed range is checked: a series whose last owned volume is
    also its last released one looks complete, and volumes past the highest
    owned one are never reported. Ordinals above MAX_VOLUME_NUMBER are
    ignored.

    Returns:
        Missing ordinals as strings, ascending
    """
    owned = {v for v in volumes if v <= MAX_VOLUME_NUMBER}
    if not owned:
        return []
    return [str(i) for i in range(min(owned), max(owned) + 1) if i not in owned]
