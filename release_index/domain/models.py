from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SetupType(str, Enum):
    """
    Windows installer variant, differing in required privilege scope.
    """

    USER = "user"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class Version(BaseModel):
    """
    One release as delivered by an upstream source.

    `platforms` maps a platform key to its download URL. Keys are kept as the
    adapter produced them so the Windows user/system split can be re-derived.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    date: str
    platforms: Dict[str, str] = Field(default_factory=dict)


class ArchivePlatform(BaseModel):
    """Download entry of the secondary (archive) source."""

    url: str
    checksum: Optional[str] = None


class ArchiveVersion(BaseModel):
    """Value of one version key in the secondary (archive) source."""

    date: str
    platforms: Dict[str, Any] = Field(
        default_factory=dict,
        description="Raw platform key -> download entry, checked one by one as ArchivePlatform.",
    )


class WindowsInstallers(BaseModel):
    """
    User/system installer URLs collected for one canonical Windows platform.
    """

    user: Optional[str] = None
    system: Optional[str] = None


class PlatformLink(BaseModel):
    """
    Flattened download entry: the primary URL plus the system-level installer
    URL for Windows platforms where one exists or can be derived.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    system_url: Optional[str] = Field(default=None, alias="systemUrl")


class PlatformVersion(BaseModel):
    """
    Per-platform projection of a version, stored in the platform index.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str
    date: str
    url: str
    platforms: List[str] = Field(
        default_factory=list,
        description="Sorted canonical platform keys present in this version.",
    )
    system_url: Optional[str] = Field(default=None, alias="systemUrl")


class FlatVersion(BaseModel):
    """
    API projection of a version with Windows installer pairs flattened.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    date: str
    platforms: Dict[str, PlatformLink] = Field(default_factory=dict)


class SourceRevisions(BaseModel):
    """Opaque revision markers of the two upstream files."""

    model_config = ConfigDict(frozen=True)

    primary: Optional[str] = None
    secondary: Optional[str] = None


class CacheOrdering(BaseModel):
    model_config = ConfigDict(frozen=True)

    versions: List[str] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)


class CacheLatest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = ""
    by_platform: Dict[str, str] = Field(default_factory=dict, alias="byPlatform")


class CacheMeta(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sha: SourceRevisions = Field(default_factory=SourceRevisions)
    last_checked: str = Field(alias="lastChecked")
    total_versions: int = Field(default=0, alias="totalVersions")


class StatusResponse(BaseModel):
    """Body of `GET /api/v1/status`."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    versions: int
    platforms: int
    last_checked: str = Field(alias="lastChecked")
    sha: SourceRevisions
