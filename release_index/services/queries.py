"""
Read-only projections of a cache snapshot into API response shapes.
"""
from __future__ import annotations

import re
from typing import List, Optional

from release_index.data.cache import CacheSnapshot
from release_index.domain.installers import CURSOR_INSTALLERS, InstallerClassifier, flatten_platforms
from release_index.domain.models import FlatVersion, PlatformVersion, StatusResponse, Version
from release_index.domain.platforms import normalize_platform

LATEST = "latest"

_LIMIT = re.compile(r"([0-9]+)(?:\.[0-9]*)?")


def resolve_limit(raw: Optional[str], total: int) -> int:
    """
    Interpret the `limit` query parameter.

    Plain decimal numbers are accepted and truncated (`1.5` reads as 1).
    Anything else, or a value below 1, means "everything"; larger values are
    clamped to `total`.
    """
    match = _LIMIT.fullmatch(str(raw).strip()) if raw is not None else None
    if match is None:
        return total
    value = int(match.group(1))
    if value <= 0:
        return total
    return min(value, total)


def flatten_version(
    version: Version, classifier: InstallerClassifier = CURSOR_INSTALLERS
) -> FlatVersion:
    """
    Project a stored version, re-deriving the Windows user/system pairs from
    its platform map.
    """
    return FlatVersion(
        version=version.version,
        date=version.date,
        platforms=flatten_platforms(version.platforms, classifier),
    )


def list_versions(
    snapshot: CacheSnapshot,
    limit: Optional[int] = None,
    classifier: InstallerClassifier = CURSOR_INSTALLERS,
) -> List[FlatVersion]:
    ids = snapshot.ordered.versions
    if limit is not None:
        ids = ids[:limit]
    return [
        flatten_version(snapshot.by_id[version_id], classifier)
        for version_id in ids
        if version_id in snapshot.by_id
    ]


def get_version(
    snapshot: CacheSnapshot,
    version_id: str,
    classifier: InstallerClassifier = CURSOR_INSTALLERS,
) -> Optional[FlatVersion]:
    """
    Look up one version by exact id; `latest` resolves to the newest version.
    """
    if version_id == LATEST:
        version_id = snapshot.latest.version
    version = snapshot.by_id.get(version_id)
    if version is None:
        return None
    return flatten_version(version, classifier)


def platform_versions(snapshot: CacheSnapshot, platform: str) -> Optional[List[PlatformVersion]]:
    """
    Versions available for a platform, newest first, or None for an unknown
    platform. Raw aliases (`linux`, `win32-x64-user`, ...) are accepted.
    """
    entries = snapshot.by_platform.get(normalize_platform(platform))
    if not entries:
        return None
    return entries


def status(snapshot: CacheSnapshot) -> StatusResponse:
    return StatusResponse(
        status="degraded" if snapshot.is_empty else "healthy",
        versions=snapshot.meta.total_versions,
        platforms=len(snapshot.ordered.platforms),
        last_checked=snapshot.meta.last_checked,
        sha=snapshot.meta.sha,
    )
