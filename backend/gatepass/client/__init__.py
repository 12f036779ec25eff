"""Async client core for the gate pass API."""

from __future__ import annotations

from .api import GatePassApi
from .cache import DestinationCache, JsonFileCacheStore, MemoryCacheStore, FALLBACK_CACHE_KEY
from .config import ClientConfig, load_client_config
from .coordinator import GatePassCoordinator, normalize_items
from .dto import DestinationRecord, PassDraft, PassItem, PassRecord
from .errors import (
    ApiError,
    CacheWriteError,
    CreationError,
    GatePassClientError,
    RollbackError,
    SequenceResolutionError,
    UpdateError,
)
from .resolver import PassNumberResolver
from .session import SessionBoundary, SessionIdentity


def build_client(config: ClientConfig | None = None):
    """Wire api, cache, coordinator and session boundary from one config."""
    config = config or load_client_config()
    api = GatePassApi(config)
    store = JsonFileCacheStore(config.cache_file) if config.cache_file else MemoryCacheStore()
    cache = DestinationCache(api, store)
    coordinator = GatePassCoordinator(
        api,
        cache,
        default_destination_id=config.default_destination_id,
    )
    return api, cache, coordinator, SessionBoundary(api, cache)


__all__ = [
    "ApiError",
    "CacheWriteError",
    "ClientConfig",
    "CreationError",
    "DestinationCache",
    "DestinationRecord",
    "FALLBACK_CACHE_KEY",
    "GatePassApi",
    "GatePassClientError",
    "GatePassCoordinator",
    "JsonFileCacheStore",
    "MemoryCacheStore",
    "PassDraft",
    "PassItem",
    "PassNumberResolver",
    "PassRecord",
    "RollbackError",
    "SequenceResolutionError",
    "SessionBoundary",
    "SessionIdentity",
    "UpdateError",
    "build_client",
    "load_client_config",
    "normalize_items",
]
