"""
In-process snapshot cache for profile pages.

Entries are keyed by (viewer, profile) because a page carries viewer-relative
state (like flags, friend status). A snapshot is served until its validity
window expires or a mutation touching either user invalidates it.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple
from uuid import UUID

logger = logging.getLogger(__name__)

CacheKey = Tuple[UUID, UUID]


class ProfileSnapshotCache:
    """TTL cache of profile-page snapshots"""

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[CacheKey, Any] = {}
        self._creation_times: Dict[CacheKey, float] = {}
        self.hits = 0
        self.misses = 0

    def get(self, viewer_id: UUID, user_id: UUID) -> Optional[Any]:
        key = (viewer_id, user_id)
        with self._lock:
            if key not in self._entries:
                self.misses += 1
                return None
            if self._clock() - self._creation_times[key] > self.ttl:
                self._remove(key)
                self.misses += 1
                return None
            self.hits += 1
            return self._entries[key]

    def set(self, viewer_id: UUID, user_id: UUID, snapshot: Any) -> None:
        key = (viewer_id, user_id)
        with self._lock:
            self._entries[key] = snapshot
            self._creation_times[key] = self._clock()

    def invalidate(self, *user_ids: UUID) -> int:
        """Remove every snapshot where any of the users is viewer or subject"""
        targets = set(user_ids)
        with self._lock:
            stale = [key for key in self._entries if key[0] in targets or key[1] in targets]
            for key in stale:
                self._remove(key)
        if stale:
            logger.debug(f"Invalidated {len(stale)} profile snapshots")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._creation_times.clear()

    def _remove(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        self._creation_times.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
