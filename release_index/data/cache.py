"""
In-memory release index.

The index is an immutable `CacheSnapshot`. Rebuilds construct a complete new
snapshot off to the side and `CacheState.publish()` swaps the reference, so a
request that grabbed the snapshot keeps a consistent view for its lifetime.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from release_index.domain.installers import CURSOR_INSTALLERS, InstallerClassifier, flatten_platforms
from release_index.domain.models import (
    CacheLatest,
    CacheMeta,
    CacheOrdering,
    PlatformVersion,
    SourceRevisions,
    Version,
)
from release_index.domain.platforms import normalize_platform, sort_platforms
from release_index.domain.versioning import compare_versions, sort_newest_first

logger = logging.getLogger(__name__)


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-31T12:00:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CacheSnapshot(BaseModel):
    """
    One complete, self-consistent state of the release index.
    """

    model_config = ConfigDict(frozen=True)

    by_id: Dict[str, Version] = Field(
        default_factory=dict,
        description="Version string -> version as delivered by its source.",
    )
    by_platform: Dict[str, List[PlatformVersion]] = Field(
        default_factory=dict,
        description="Canonical platform -> projections, newest version first.",
    )
    ordered: CacheOrdering = Field(default_factory=CacheOrdering)
    latest: CacheLatest = Field(default_factory=CacheLatest)
    meta: CacheMeta

    @classmethod
    def empty(cls, last_checked: Optional[str] = None) -> "CacheSnapshot":
        return cls(meta=CacheMeta(last_checked=last_checked or utc_timestamp()))

    @property
    def is_empty(self) -> bool:
        return not self.ordered.versions


def _insert_newest_first(entries: List[PlatformVersion], entry: PlatformVersion) -> None:
    """
    Insert before the first entry that is older than `entry`; entries with an
    equal version keep their place ahead of the new one.
    """
    for index, existing in enumerate(entries):
        if compare_versions(existing.version, entry.version) > 0:
            entries.insert(index, entry)
            return
    entries.append(entry)


def build_snapshot(
    primary: Iterable[Version],
    secondary: Iterable[Version],
    sha: SourceRevisions,
    last_checked: Optional[str] = None,
    classifier: InstallerClassifier = CURSOR_INSTALLERS,
) -> CacheSnapshot:
    """
    Merge the versions of both sources into a new snapshot.

    Versions are sorted newest-first (stable, so a primary entry precedes a
    secondary entry with an equal version). The first occurrence of each
    version string wins; later duplicates are dropped with all their
    platform data rather than merged.
    """
    combined = sort_newest_first([*primary, *secondary], key=lambda v: v.version)

    by_id: Dict[str, Version] = {}
    seen_platforms = set()
    dropped = 0
    for version in combined:
        if version.version in by_id:
            dropped += 1
            continue
        by_id[version.version] = version
        seen_platforms.update(normalize_platform(key) for key in version.platforms)

    if dropped:
        logger.debug(f"Dropped {dropped} duplicate version entries")

    ordered = CacheOrdering(
        versions=list(by_id),
        platforms=sort_platforms(seen_platforms),
    )

    by_platform: Dict[str, List[PlatformVersion]] = {}
    for version in by_id.values():
        present = sort_platforms({normalize_platform(key) for key in version.platforms})
        for platform, link in flatten_platforms(version.platforms, classifier).items():
            entry = PlatformVersion(
                version=version.version,
                date=version.date,
                url=link.url,
                platforms=present,
                system_url=link.system_url,
            )
            _insert_newest_first(by_platform.setdefault(platform, []), entry)

    latest = CacheLatest(
        version=ordered.versions[0] if ordered.versions else "",
        by_platform={
            platform: by_platform[platform][0].version
            for platform in ordered.platforms
            if by_platform.get(platform)
        },
    )

    meta = CacheMeta(
        sha=sha,
        last_checked=last_checked or utc_timestamp(),
        total_versions=len(ordered.versions),
    )

    return CacheSnapshot(
        by_id=by_id,
        by_platform=by_platform,
        ordered=ordered,
        latest=latest,
        meta=meta,
    )


class CacheState:
    """
    Holder of the currently published snapshot.

    Only the refresher writes; request handlers read `snapshot` once and work
    on that reference.
    """

    def __init__(self, snapshot: Optional[CacheSnapshot] = None):
        self._snapshot = snapshot if snapshot is not None else CacheSnapshot.empty()

    @property
    def snapshot(self) -> CacheSnapshot:
        return self._snapshot

    def publish(self, snapshot: CacheSnapshot) -> None:
        self._snapshot = snapshot

    def touch(self, last_checked: Optional[str] = None) -> None:
        """Record a revision check that did not lead to a rebuild."""
        current = self._snapshot
        meta = current.meta.model_copy(update={"last_checked": last_checked or utc_timestamp()})
        self._snapshot = current.model_copy(update={"meta": meta})
