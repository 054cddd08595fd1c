"""Numeric dot-segment version ordering."""

from functools import cmp_to_key
from typing import Iterable, List


def _segment(parts: List[str], index: int) -> int:
    if index >= len(parts):
        return 0
    try:
        return int(parts[index] or "0")
    except ValueError:
        return 0


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings segment by segment.

    Missing trailing segments count as 0, so "6" == "6.0.0". Segments that
    are not integers also count as 0.

    Returns:
        Negative if a < b, zero if equal, positive if a > b.
    """
    a_parts = a.split(".")
    b_parts = b.split(".")
    for i in range(max(len(a_parts), len(b_parts))):
        a_part = _segment(a_parts, i)
        b_part = _segment(b_parts, i)
        if a_part != b_part:
            return a_part - b_part
    return 0


def sort_versions(versions: Iterable[str]) -> List[str]:
    """Return ``versions`` sorted newest first."""
    return sorted(versions, key=cmp_to_key(compare_versions), reverse=True)
