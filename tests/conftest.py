"""
Pytest configuration and shared fixtures for the release index tests.
"""

from __future__ import annotations

from typing import Callable, Dict, List

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from release_index.api.versions import router as versions_router
from release_index.core.dependencies import get_cache_state
from release_index.data.cache import CacheSnapshot, CacheState, build_snapshot
from release_index.domain.models import SourceRevisions, Version

USER_URL = "https://downloads.example.com/production/abc/win32/x64/user-setup/CursorUserSetup-x64-1.2.0.exe"
SYSTEM_URL = "https://downloads.example.com/production/abc/win32/x64/system-setup/CursorSetup-x64-1.2.0.exe"


@pytest.fixture
def make_version() -> Callable[..., Version]:
    """
    Factory for `Version` objects with a default date.
    """

    def _make(version: str, platforms: Dict[str, str], date: str = "2024-01-01") -> Version:
        return Version(version=version, date=date, platforms=platforms)

    return _make


@pytest.fixture
def primary_versions(make_version) -> List[Version]:
    """Versions shaped like the primary source (raw Windows variant keys)."""
    return [
        make_version(
            "1.2.0",
            {
                "win32-x64-user": USER_URL,
                "win32-x64-system": SYSTEM_URL,
                "darwin-universal": "https://downloads.example.com/1.2.0/Cursor-darwin-universal.dmg",
                "linux-x64": "https://downloads.example.com/1.2.0/Cursor-x86_64.AppImage",
            },
            date="2024-03-01",
        ),
        make_version(
            "1.0.0",
            {
                "win32-x64-user": "https://downloads.example.com/1.0.0/win32/x64/user-setup/CursorUserSetup-x64-1.0.0.exe",
                "linux-x64": "https://downloads.example.com/1.0.0/Cursor-x86_64.AppImage",
            },
            date="2024-01-01",
        ),
    ]


@pytest.fixture
def secondary_versions(make_version) -> List[Version]:
    """Versions shaped like the normalised secondary source."""
    return [
        make_version(
            "1.1.0",
            {
                "win32-arm64": "https://downloads.example.com/1.1.0/win32/arm64/user-setup/CursorUserSetup-arm64-1.1.0.exe",
                "darwin-arm64": "https://downloads.example.com/1.1.0/Cursor-darwin-arm64.dmg",
                "linux-x64": "https://downloads.example.com/1.1.0/Cursor-x86_64.AppImage",
            },
            date="2024-02-01",
        ),
        # Same version as the primary source, different platforms: dropped.
        make_version(
            "1.0.0",
            {"darwin-x64": "https://downloads.example.com/1.0.0/Cursor-darwin-x64.dmg"},
            date="2024-01-02",
        ),
    ]


@pytest.fixture
def snapshot(primary_versions, secondary_versions) -> CacheSnapshot:
    """A snapshot built from both sample sources."""
    return build_snapshot(
        primary_versions,
        secondary_versions,
        sha=SourceRevisions(primary="sha-primary", secondary="sha-secondary"),
        last_checked="2024-03-02T00:00:00.000Z",
    )


@pytest.fixture
def cache_state(snapshot: CacheSnapshot) -> CacheState:
    return CacheState(snapshot)


@pytest.fixture
def test_app(cache_state: CacheState) -> FastAPI:
    """Create a test FastAPI app serving the versions router."""
    app = FastAPI()
    app.include_router(versions_router, prefix="/api/v1")
    app.dependency_overrides[get_cache_state] = lambda: cache_state
    return app


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    """Create a TestClient for the test app."""
    return TestClient(test_app)
