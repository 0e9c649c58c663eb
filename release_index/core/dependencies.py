from __future__ import annotations

from typing import Optional

from release_index.core.config import Settings
from release_index.data.cache import CacheState
from release_index.services.refresher import CacheRefresher

_settings: Optional[Settings] = None
_cache_state: Optional[CacheState] = None
_refresher: Optional[CacheRefresher] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def get_cache_state() -> CacheState:
    global _cache_state
    if _cache_state is None:
        _cache_state = CacheState()
    return _cache_state


def get_refresher() -> CacheRefresher:
    global _refresher
    if _refresher is None:
        _refresher = CacheRefresher.from_settings(get_settings(), get_cache_state())
    return _refresher
