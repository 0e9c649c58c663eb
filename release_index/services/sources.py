"""
Upstream version sources.

Both sources are JSON files hosted in GitHub repositories and read through
the GitHub contents API, which returns the file body together with its blob
SHA. The SHA is the revision marker used for change detection.
"""
from __future__ import annotations

import base64
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from release_index.core.config import SourceConfig
from release_index.domain.models import ArchivePlatform, ArchiveVersion, Version
from release_index.domain.platforms import normalize_platform

logger = logging.getLogger(__name__)

USER_AGENT = "release-index/0.1"


class SourceError(Exception):
    """Raised when an upstream source cannot be fetched or parsed."""


class SourceFile(BaseModel):
    content: str
    sha: Optional[str] = None


class SourceResult(BaseModel):
    versions: List[Version] = Field(default_factory=list)
    sha: Optional[str] = None


class GitHubContentClient:
    """
    Minimal reader for files exposed by the GitHub contents API.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str = "https://api.github.com",
        token: Optional[str] = None,
    ):
        self.client = client
        self.api_url = api_url.rstrip("/")
        self.token = token

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get(self, url: str, source: SourceConfig, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.get(url, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SourceError(f"Failed to fetch {source.label}: {e}") from e
        return response

    async def _get_contents(self, source: SourceConfig) -> Dict[str, Any]:
        url = f"{self.api_url}/repos/{source.owner}/{source.repo}/contents/{source.path}"
        response = await self._get(url, source, params={"ref": source.branch})
        try:
            data = response.json()
        except ValueError as e:
            raise SourceError(f"Invalid contents response for {source.label}: {e}") from e
        if not isinstance(data, dict):
            # Directories come back as a list of entries.
            raise SourceError(f"Invalid source {source.label}: not a file")
        return data

    async def get_file(self, source: SourceConfig) -> SourceFile:
        """
        Fetch the decoded file body and its revision marker.
        """
        data = await self._get_contents(source)
        sha = data.get("sha")
        content = data.get("content")

        # Files over 1 MB come back without inline content.
        if not content and data.get("download_url"):
            response = await self._get(data["download_url"], source)
            return SourceFile(content=response.text, sha=sha)

        if not isinstance(content, str):
            raise SourceError(f"Invalid source {source.label}: no content")
        try:
            text = base64.b64decode(content).decode("utf-8")
        except ValueError as e:
            raise SourceError(f"Could not decode {source.label}: {e}") from e
        return SourceFile(content=text, sha=sha)

    async def get_revision(self, source: SourceConfig) -> Optional[str]:
        """
        Fetch only the revision marker of a file.
        """
        data = await self._get_contents(source)
        sha = data.get("sha")
        return sha if isinstance(sha, str) else None


class VersionSource(ABC):
    """
    One upstream file that yields a list of versions.
    """

    name: str = "source"

    def __init__(self, github: GitHubContentClient, config: SourceConfig):
        self.github = github
        self.config = config

    @abstractmethod
    def parse(self, payload: Any) -> List[Version]:
        """Convert the decoded JSON document into versions."""

    async def fetch(self) -> SourceResult:
        file = await self.github.get_file(self.config)
        try:
            payload = json.loads(file.content)
        except ValueError as e:
            raise SourceError(f"Invalid JSON in {self.config.label}: {e}") from e
        try:
            versions = self.parse(payload)
        except (ValidationError, TypeError, KeyError) as e:
            raise SourceError(f"Unexpected document shape in {self.config.label}: {e}") from e
        logger.info(f"Fetched {len(versions)} versions from {self.name} source ({self.config.label})")
        return SourceResult(versions=versions, sha=file.sha)

    async def revision(self) -> Optional[str]:
        return await self.github.get_revision(self.config)

    def _skip(self, record: str, error: ValidationError) -> None:
        logger.warning(
            f"Skipping malformed {record} in {self.name} source ({self.config.label}): "
            f"{error.error_count()} validation errors"
        )


class PrimaryDocument(BaseModel):
    versions: List[Any] = Field(default_factory=list)


class PrimarySource(VersionSource):
    """
    Version history file already shaped as `{"versions": [Version, ...]}`.

    Entries that do not validate are skipped one by one.
    """

    name = "primary"

    def parse(self, payload: Any) -> List[Version]:
        versions: List[Version] = []
        for index, record in enumerate(PrimaryDocument.model_validate(payload).versions):
            try:
                versions.append(Version.model_validate(record))
            except ValidationError as e:
                self._skip(f"version entry #{index}", e)
        return versions


_ARCHIVE = TypeAdapter(Dict[str, Any])


class SecondarySource(VersionSource):
    """
    Archive file shaped as `{version: {date, platforms: {key: {url, checksum}}}}`.

    Platform keys are normalised here and checksums are dropped. A version
    without a usable date, or a platform without a usable url, is skipped on
    its own.
    """

    name = "secondary"

    def parse(self, payload: Any) -> List[Version]:
        archive = _ARCHIVE.validate_python(payload)
        versions: List[Version] = []
        for version, raw_entry in archive.items():
            try:
                entry = ArchiveVersion.model_validate(raw_entry)
            except ValidationError as e:
                self._skip(f"version {version}", e)
                continue
            platforms: Dict[str, str] = {}
            for raw_key, raw_details in entry.platforms.items():
                try:
                    details = ArchivePlatform.model_validate(raw_details)
                except ValidationError as e:
                    self._skip(f"platform {raw_key} of version {version}", e)
                    continue
                platforms[normalize_platform(raw_key)] = details.url
            versions.append(Version(version=version, date=entry.date, platforms=platforms))
        return versions
