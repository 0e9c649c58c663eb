"""
Background refresh of the release index.

Startup performs one unconditional rebuild. Afterwards the refresher wakes up
every `refresh_interval_seconds`, compares the upstream revision markers with
the ones recorded in the published snapshot, and rebuilds only when one of
them moved.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional

import httpx

from release_index.core.config import Settings
from release_index.data.cache import CacheState, build_snapshot, utc_timestamp
from release_index.domain.installers import CURSOR_INSTALLERS, InstallerClassifier
from release_index.domain.models import SourceRevisions
from release_index.services.sources import (
    GitHubContentClient,
    PrimarySource,
    SecondarySource,
    SourceError,
    SourceResult,
    VersionSource,
)

logger = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"


class CacheRefresher:
    """
    Owns the rebuild pipeline (sources -> snapshot -> publish) and its schedule.
    """

    def __init__(
        self,
        cache: CacheState,
        primary: VersionSource,
        secondary: VersionSource,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        classifier: InstallerClassifier = CURSOR_INSTALLERS,
    ):
        self.cache = cache
        self.primary = primary
        self.secondary = secondary
        self.settings = settings or Settings()
        self.classifier = classifier
        self.state = RefreshState.IDLE
        # Closed on stop() when set.
        self._client = client
        self._tasks: List[asyncio.Task] = []

    @classmethod
    def from_settings(cls, settings: Settings, cache: CacheState) -> "CacheRefresher":
        client = httpx.AsyncClient(
            timeout=settings.fetch_timeout_seconds,
            follow_redirects=True,
        )
        github = GitHubContentClient(client, settings.github_api_url, settings.github_token)
        return cls(
            cache,
            PrimarySource(github, settings.primary),
            SecondarySource(github, settings.secondary),
            settings=settings,
            client=client,
        )

    # ------------------------------------------------------------------
    # Rebuild
    # ------------------------------------------------------------------

    async def _fetch(self, source: VersionSource) -> Optional[SourceResult]:
        try:
            return await source.fetch()
        except SourceError as e:
            logger.warning(f"{source.name} source unavailable: {e}")
        except Exception as e:
            logger.error(f"Unexpected error reading {source.name} source: {e}", exc_info=True)
        return None

    async def refresh(self) -> bool:
        """
        Rebuild the whole index from both sources and publish it.

        Returns False, leaving the published snapshot untouched, when neither
        source produced any versions or the build raised.
        """
        try:
            primary, secondary = await asyncio.gather(
                self._fetch(self.primary),
                self._fetch(self.secondary),
            )
            primary_versions = primary.versions if primary else []
            secondary_versions = secondary.versions if secondary else []

            if not primary_versions and not secondary_versions:
                logger.error("Cache rebuild skipped: no versions available from either source")
                return False

            # A source that failed gets no marker, so the next check rebuilds.
            sha = SourceRevisions(
                primary=primary.sha if primary else None,
                secondary=secondary.sha if secondary else None,
            )

            snapshot = build_snapshot(
                primary_versions,
                secondary_versions,
                sha=sha,
                last_checked=utc_timestamp(),
                classifier=self.classifier,
            )
            self.cache.publish(snapshot)
            logger.info(
                f"Cache rebuilt: {snapshot.meta.total_versions} versions, "
                f"{len(snapshot.ordered.platforms)} platforms, latest {snapshot.latest.version}"
            )
            return True
        except Exception as e:
            logger.error(f"Cache rebuild failed: {e}", exc_info=True)
            return False

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    async def check_for_updates(self) -> bool:
        """
        Fetch both revision markers and report whether either differs from
        the published snapshot. A marker that could not be fetched counts as
        unchanged.
        """
        results = await asyncio.gather(
            self.primary.revision(),
            self.secondary.revision(),
            return_exceptions=True,
        )
        self.cache.touch(utc_timestamp())
        current = self.cache.snapshot.meta.sha

        changed = False
        for source, result, known in (
            (self.primary, results[0], current.primary),
            (self.secondary, results[1], current.secondary),
        ):
            if isinstance(result, BaseException):
                logger.warning(f"Revision check failed for {source.name} source: {result}")
                continue
            if result is not None and result != known:
                logger.info(f"{source.name} source changed: {known} -> {result}")
                changed = True
        return changed

    async def tick(self) -> bool:
        """
        One idle -> checking -> idle cycle. Returns True when a rebuild was
        published.
        """
        if self.state is RefreshState.CHECKING:
            logger.debug("Refresh already in progress; skipping")
            return False

        self.state = RefreshState.CHECKING
        try:
            if not await self.check_for_updates():
                logger.debug("Upstream sources unchanged; skipping rebuild")
                return False
            return await self.refresh()
        except Exception as e:
            logger.error(f"Cache refresh failed: {e}", exc_info=True)
            return False
        finally:
            self.state = RefreshState.IDLE

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.settings.refresh_interval_seconds)
            await self.tick()

    async def _retry_initial_load(self) -> None:
        await asyncio.sleep(self.settings.retry_delay_seconds)
        if not await self.refresh():
            logger.error("Retry of initial cache load failed; waiting for the next scheduled check")

    async def start(self) -> bool:
        """
        Load the cache once, then start the periodic refresh task.

        When the initial load fails a single retry is scheduled after
        `retry_delay_seconds`; the periodic task starts either way.
        """
        loaded = await self.refresh()
        if not loaded:
            logger.error(
                f"Initial cache load failed - retrying in {self.settings.retry_delay_seconds}s"
            )
            self._tasks.append(asyncio.create_task(self._retry_initial_load()))

        self._tasks.append(asyncio.create_task(self.run_forever()))
        logger.info(f"Refreshing every {self.settings.refresh_interval_seconds}s")
        return loaded

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        if self._client is not None:
            await self._client.aclose()
