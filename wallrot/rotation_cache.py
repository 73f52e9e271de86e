"""
In-memory rotation cache for search results.

Each query key maps to the image list returned by one search plus a cursor
pointing at the next image to serve. Entries are never refreshed; they live
until the process exits or the optional LRU bound evicts them.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, MutableMapping, Optional, Sequence, Tuple
from cachetools import LRUCache
from .models import ImageDescriptor

logger = logging.getLogger(__name__)


class EmptyResultSet(Exception):
    """Search succeeded but matched no images."""
    pass


@dataclass
class CacheEntry:
    """Images for one query and the position of the next one to serve."""
    images: Tuple[ImageDescriptor, ...]
    cursor: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class _LoggingLRUCache(LRUCache):
    """LRUCache that logs the keys it evicts."""

    def popitem(self):
        key, value = super().popitem()
        logger.info("Evicted rotation entry %r", key)
        return key, value


class RotationCache:
    """
    Maps query keys to CacheEntry objects and serves their images round-robin.

    get_or_create() fetches at most once per key: concurrent misses for the
    same key wait on a per-key asyncio.Lock. next() advances the cursor under
    the entry's own lock, so concurrent readers always get distinct
    consecutive positions.
    """

    def __init__(self, max_entries: int = 0):
        """
        Initialize cache.

        Args:
            max_entries: Maximum number of keys kept, least recently used
                         evicted first. 0 means unbounded.
        """
        if max_entries < 0:
            raise ValueError("max_entries must be >= 0")
        self.max_entries = max_entries
        self._entries: MutableMapping[str, CacheEntry]
        if max_entries:
            self._entries = _LoggingLRUCache(maxsize=max_entries)
        else:
            self._entries = {}
        self._fetch_locks: Dict[str, asyncio.Lock] = {}
        self._map_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get the entry for a key and mark it as recently used.

        Args:
            key: Normalized query key

        Returns:
            CacheEntry or None if not cached
        """
        with self._map_lock:
            return self._entries.get(key)

    def _store(self, key: str, entry: CacheEntry):
        with self._map_lock:
            self._entries[key] = entry

    async def get_or_create(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Sequence[ImageDescriptor]]],
    ) -> CacheEntry:
        """
        Return the entry for key, fetching and storing it on a miss.

        Args:
            key: Normalized query key
            fetch_fn: Coroutine function returning the image list

        Returns:
            Existing or newly created CacheEntry

        Raises:
            Whatever fetch_fn raises. Nothing is stored in that case, so the
            next call for the same key fetches again.
        """
        entry = self.get(key)
        if entry is not None:
            return entry

        lock = self._fetch_locks.setdefault(key, asyncio.Lock())
        async with lock:
            try:
                # Another request may have filled the entry while we waited
                entry = self.get(key)
                if entry is not None:
                    return entry

                images = await fetch_fn()
                entry = CacheEntry(images=tuple(images))
                self._store(key, entry)
                logger.info("Cached %d images for %r", len(entry.images), key)
                return entry
            finally:
                if self._fetch_locks.get(key) is lock:
                    del self._fetch_locks[key]

    def next(self, entry: CacheEntry) -> ImageDescriptor:
        """
        Select the image at the cursor and advance it.

        Args:
            entry: Entry returned by get_or_create()

        Returns:
            The selected image

        Raises:
            EmptyResultSet: If the entry holds no images
        """
        with entry.lock:
            if entry.cursor >= len(entry.images):
                entry.cursor = 0

            if not entry.images:
                raise EmptyResultSet("No images matched this query")

            selected = entry.images[entry.cursor]
            entry.cursor += 1
            return selected

    def clear(self):
        """Drop all entries."""
        with self._map_lock:
            self._entries.clear()
        self._fetch_locks.clear()
