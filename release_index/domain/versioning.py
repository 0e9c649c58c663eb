from __future__ import annotations

import re
from functools import cmp_to_key
from typing import Iterable, List, Tuple, TypeVar

T = TypeVar("T")

_NUMERIC = re.compile(r"[0-9]+")


def _components(version: str) -> Tuple[int, int, int]:
    """
    Split a dotted version into (major, minor, patch).

    Missing or non-numeric components count as 0; anything past the third
    component is ignored.
    """
    parts: List[int] = []
    for part in str(version).split(".")[:3]:
        part = part.strip()
        parts.append(int(part) if _NUMERIC.fullmatch(part) else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def compare_versions(a: str, b: str) -> int:
    """
    Compare two version strings.

    Returns a positive number when `b` is newer than `a`, a negative number
    when `a` is newer, and 0 when both resolve to the same components.
    Sorting with this comparator therefore yields newest-first order.
    """
    a_major, a_minor, a_patch = _components(a)
    b_major, b_minor, b_patch = _components(b)
    return (b_major - a_major) or (b_minor - a_minor) or (b_patch - a_patch)


newest_first_key = cmp_to_key(compare_versions)


def sort_newest_first(items: Iterable[T], key=lambda item: item) -> List[T]:
    """
    Stable newest-first sort; items with equal versions keep their input order.
    """
    return sorted(items, key=lambda item: newest_first_key(key(item)))
