from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from release_index.core.dependencies import get_cache_state
from release_index.data.cache import CacheSnapshot, CacheState
from release_index.services import queries

logger = logging.getLogger(__name__)
router = APIRouter()


def get_snapshot(cache: CacheState = Depends(get_cache_state)) -> CacheSnapshot:
    """
    Pin the published snapshot for the duration of one request.
    """
    return cache.snapshot


def _dump(model: BaseModel) -> Any:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ---------------------------------------------------------------------------
# 1. GET /versions
# ---------------------------------------------------------------------------

@router.get("/versions")
async def get_versions(
    platform: Optional[str] = Query(default=None, description="Canonical or raw platform key."),
    version: Optional[str] = Query(default=None, description="Exact version or 'latest'."),
    # Kept as a string so malformed values fall back to the default instead of a 422.
    limit: Optional[str] = Query(default=None, description="Maximum number of versions."),
    snapshot: CacheSnapshot = Depends(get_snapshot),
) -> JSONResponse:
    """
    List versions, a single version, or the versions of one platform.
    """
    if snapshot.is_empty:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "No data available")

    count = queries.resolve_limit(limit, len(snapshot.ordered.versions))

    if platform:
        entries = queries.platform_versions(snapshot, platform)
        if entries is None:
            return _error(status.HTTP_404_NOT_FOUND, "Platform not found")
        if count == 1:
            return JSONResponse(content=_dump(entries[0]))
        return JSONResponse(content={"versions": [_dump(entry) for entry in entries[:count]]})

    if version:
        found = queries.get_version(snapshot, version)
        if found is None:
            message = "No versions available" if version == queries.LATEST else "Version not found"
            return _error(status.HTTP_404_NOT_FOUND, message)
        return JSONResponse(content=_dump(found))

    return JSONResponse(
        content={"versions": [_dump(item) for item in queries.list_versions(snapshot, count)]}
    )


# ---------------------------------------------------------------------------
# 2. GET /status
# ---------------------------------------------------------------------------

@router.get("/status")
async def get_status(snapshot: CacheSnapshot = Depends(get_snapshot)) -> JSONResponse:
    """
    Cache health: `healthy` once any version is cached, `degraded` before.
    """
    return JSONResponse(content=queries.status(snapshot).model_dump(mode="json", by_alias=True))
