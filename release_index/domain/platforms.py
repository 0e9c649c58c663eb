from __future__ import annotations

import re
from typing import Iterable, List

from release_index.core.config import PLATFORM_ALIASES, PLATFORM_ORDER

WINDOWS_PREFIX = "win32-"

_VARIANT_SUFFIX = re.compile(r"(?:-(?:user|system))+$")


def is_windows(platform: str) -> bool:
    return platform.startswith(WINDOWS_PREFIX)


def normalize_platform(platform: str) -> str:
    """
    Map a raw upstream platform key onto its canonical key.

    Windows keys lose their `-user`/`-system` installer suffix; known aliases
    (`mac`, `linux`, ...) are translated; anything else is returned as is.
    Applying this twice gives the same result as applying it once.
    """
    if is_windows(platform):
        return _VARIANT_SUFFIX.sub("", platform)
    return PLATFORM_ALIASES.get(platform, platform)


def sort_platforms(platforms: Iterable[str]) -> List[str]:
    """
    Order canonical keys by the preferred display order; unknown keys follow
    alphabetically.
    """
    rank = {name: index for index, name in enumerate(PLATFORM_ORDER)}
    unknown = len(PLATFORM_ORDER)
    return sorted(platforms, key=lambda name: (rank.get(name, unknown), name))
