from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# Preferred display order for canonical platform keys.
PLATFORM_ORDER: List[str] = [
    # Windows
    "win32-x64",
    "win32-arm64",
    # macOS
    "darwin-universal",
    "darwin-x64",
    "darwin-arm64",
    # Linux
    "linux-x64",
    "linux-arm64",
]

# Raw upstream platform names that map onto a canonical key.
PLATFORM_ALIASES: Dict[str, str] = {
    "windows": "win32-x64",
    "windows_arm64": "win32-arm64",
    "mac": "darwin-universal",
    "mac_arm64": "darwin-arm64",
    "mac_intel": "darwin-x64",
    "linux": "linux-x64",
}


class SourceConfig(BaseModel):
    """
    Location of one upstream JSON file hosted in a GitHub repository.
    """

    owner: str
    repo: str
    path: str
    branch: str = "main"

    @property
    def label(self) -> str:
        return f"{self.owner}/{self.repo}/{self.path}@{self.branch}"


class Settings(BaseModel):
    """
    Runtime configuration for the release index service.

    Every field has a working default; `from_env()` lets the deployment
    override them through environment variables.
    """

    host: str = Field(default="0.0.0.0", description="Interface uvicorn binds to.")
    port: int = Field(default=3000, ge=1, le=65535, description="Listen port.")
    refresh_interval_seconds: float = Field(
        default=600,
        gt=0,
        description="How often upstream revision markers are checked.",
    )
    retry_delay_seconds: float = Field(
        default=5,
        ge=0,
        description="Delay before the one-shot retry after an empty initial load.",
    )
    fetch_timeout_seconds: float = Field(
        default=30,
        gt=0,
        description="Timeout applied to every upstream HTTP request.",
    )
    github_api_url: str = Field(default="https://api.github.com")
    github_token: Optional[str] = Field(
        default=None,
        description="Optional token used to raise the GitHub API rate limit.",
    )
    log_level: str = "INFO"
    primary: SourceConfig = Field(
        default_factory=lambda: SourceConfig(
            owner="oslook",
            repo="cursor-ai-downloads",
            path="version-history.json",
            branch="main",
        )
    )
    secondary: SourceConfig = Field(
        default_factory=lambda: SourceConfig(
            owner="worryzyy",
            repo="cursor-ver-dl",
            path="cursor-version-archive.json",
            branch="master",
        )
    )

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            host=os.environ.get("HOST", defaults.host),
            port=int(_env_number("PORT", defaults.port)),
            refresh_interval_seconds=_env_number(
                "RELEASE_INDEX_REFRESH_INTERVAL", defaults.refresh_interval_seconds
            ),
            retry_delay_seconds=_env_number(
                "RELEASE_INDEX_RETRY_DELAY", defaults.retry_delay_seconds
            ),
            fetch_timeout_seconds=_env_number(
                "RELEASE_INDEX_FETCH_TIMEOUT", defaults.fetch_timeout_seconds
            ),
            github_api_url=os.environ.get("GITHUB_API_URL", defaults.github_api_url).rstrip("/"),
            github_token=os.environ.get("GITHUB_TOKEN") or None,
            log_level=_env_log_level(defaults.log_level),
        )


def _env_number(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value {raw!r} for {name}; using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive value {raw!r} for {name}; using {default}")
        return default
    return value


def _env_log_level(default: str) -> str:
    raw = os.environ.get("LOG_LEVEL", default).strip().upper()
    if not isinstance(logging.getLevelName(raw), int):
        logger.warning(f"Ignoring unknown LOG_LEVEL {raw!r}; using {default}")
        return default
    return raw
