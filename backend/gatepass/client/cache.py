# Overview: Per-session destination cache with request coalescing and pluggable storage.

"""
Destination reference cache.

KEYS: one entry per signed-in user, keyed by the lower-cased email. Callers
without an identity share FALLBACK_CACHE_KEY.

COALESCING: concurrent reads for the same key and mode share one request.
The in-flight entry is removed as soon as that request settles, success or
failure, so the next read after a failure tries again.

INVALIDATION: each key has a generation number. invalidate() bumps it, so a
request that was already running when the key was invalidated still answers
its waiters but never writes its (stale) result back into the store.

STORAGE: MemoryCacheStore by default, JsonFileCacheStore to survive
restarts. If a store write fails the cache stops trusting the store and
refetches on every read.
"""

from __future__ import annotations

import asyncio
import json
import logging
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional

from .api import GatePassApi
from .dto import DestinationRecord, destination_to_wire, normalize_destination
from .errors import CacheWriteError


logger = logging.getLogger(__name__)


FALLBACK_CACHE_KEY = "__shared__"


def resolve_cache_key(identity: Any = None) -> str:
    """Cache key for a SessionIdentity, a bare email string or None."""
    email = identity if isinstance(identity, str) else getattr(identity, "email", None)
    email = (email or "").strip().lower()
    return email or FALLBACK_CACHE_KEY


def match_destination(records: List[DestinationRecord], code: Optional[str]) -> Optional[DestinationRecord]:
    """First destination whose code matches case-insensitively."""
    wanted = (code or "").strip().casefold()
    if not wanted:
        return None
    for record in records:
        if (record.code or "").strip().casefold() == wanted:
            return record
    return None


def _flight_key(key: str, force_refresh: bool) -> str:
    return f"{key}:{'refresh' if force_refresh else 'cached'}"


class MemoryCacheStore:
    def __init__(self):
        self._entries: Dict[str, List[DestinationRecord]] = {}

    def get(self, key: str) -> Optional[List[DestinationRecord]]:
        entry = self._entries.get(key)
        return list(entry) if entry is not None else None

    def set(self, key: str, records: List[DestinationRecord]) -> None:
        self._entries[key] = list(records)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class JsonFileCacheStore:
    """
    Cache entries kept in one JSON document: {"<key>": [<destination>, ...]}.

    An unreadable or corrupt file reads as empty. Write failures raise
    CacheWriteError.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable destination cache %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise CacheWriteError(f"Could not write destination cache {self.path}: {e}") from e

    def get(self, key: str) -> Optional[List[DestinationRecord]]:
        rows = self._load().get(key)
        if not isinstance(rows, list):
            return None
        return [normalize_destination(row, i) for i, row in enumerate(rows) if isinstance(row, dict)]

    def set(self, key: str, records: List[DestinationRecord]) -> None:
        data = self._load()
        data[key] = [destination_to_wire(record) for record in records]
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class DestinationCache:
    def __init__(self, api: GatePassApi, store=None):
        self.api = api
        self.store = store if store is not None else MemoryCacheStore()
        self._inflight: Dict[str, asyncio.Future] = {}
        self._generations: Dict[str, int] = {}
        self._store_failed = False

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def _read(self, key: str) -> Optional[List[DestinationRecord]]:
        if self._store_failed:
            return None
        return self.store.get(key)

    def _write(self, key: str, records: List[DestinationRecord]) -> None:
        if self._store_failed:
            return
        try:
            self.store.set(key, records)
        except CacheWriteError as e:
            logger.warning("Destination cache disabled, refetching on every read: %s", e)
            self._store_failed = True

    def _delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except CacheWriteError as e:
            logger.warning("Destination cache disabled, refetching on every read: %s", e)
            self._store_failed = True

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _fetch(self, key: str, generation: int) -> List[DestinationRecord]:
        rows = await self.api.list_destinations()
        records = [normalize_destination(row, i) for i, row in enumerate(rows) if isinstance(row, dict)]
        if self._generations.get(key, 0) == generation:
            self._write(key, records)
        else:
            logger.debug("Discarding destinations fetched for invalidated key %s", key)
        return records

    def _settle(self, flight_key: str, task: asyncio.Future) -> None:
        if self._inflight.get(flight_key) is task:
            del self._inflight[flight_key]
        if not task.cancelled():
            # Retrieve so an unawaited failure is not reported as never retrieved
            task.exception()

    async def get(self, identity: Any = None, force_refresh: bool = False) -> List[DestinationRecord]:
        """Destinations for the identity, from the store unless forced or missing."""
        key = resolve_cache_key(identity)
        if not force_refresh:
            cached = self._read(key)
            if cached is not None:
                return cached

        flight_key = _flight_key(key, force_refresh)
        task = self._inflight.get(flight_key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, self._generations.get(key, 0)))
            self._inflight[flight_key] = task
            task.add_done_callback(partial(self._settle, flight_key))
        records = await asyncio.shield(task)
        return list(records)

    async def warm(self, identity: Any = None) -> None:
        """Populate the entry for the identity if it is empty."""
        if self._read(resolve_cache_key(identity)) is None:
            await self.get(identity)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def upsert(self, identity: Any, record: DestinationRecord) -> None:
        """
        Merge one destination into an existing entry.

        Matches by id (compared as strings), then by code ignoring case.
        Nothing happens when the identity has no cached entry yet; the next
        read fetches the full list including the new record.
        """
        key = resolve_cache_key(identity)
        records = self._read(key)
        if records is None:
            return

        target_code = (record.code or "").casefold()
        index = next(
            (i for i, existing in enumerate(records) if str(existing.id) == str(record.id)),
            None,
        )
        if index is None and target_code:
            index = next(
                (i for i, existing in enumerate(records) if (existing.code or "").casefold() == target_code),
                None,
            )
        if index is None:
            records.append(record)
        else:
            records[index] = record
        self._write(key, records)

    def invalidate(self, *identities: Any) -> None:
        """Drop the entries for the given identities and the shared entry."""
        keys = {resolve_cache_key(identity) for identity in identities}
        keys.add(FALLBACK_CACHE_KEY)
        for key in keys:
            self._generations[key] = self._generations.get(key, 0) + 1
            for flight_key in (_flight_key(key, False), _flight_key(key, True)):
                self._inflight.pop(flight_key, None)
            self._delete(key)
        logger.debug("Invalidated destination cache keys: %s", sorted(keys))
