"""In-memory permission cache for the RBAC service.

Holds the resolved permission map of each subject for a fixed TTL window so
authorization checks do not query the repository every time. Expired entries
are treated as absent on read and reclaimed by a periodic sweep task.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ....core.exceptions import PermissionCacheClosedError
from ..entities import EntityRef, PermissionMap

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 300.0

# Subjects are addressed by the same (type, id) pair as any other entity
CacheKey = EntityRef


@dataclass
class CacheEntry:
    """Cached permission map with its expiry instant on the cache clock."""
    
    permissions: PermissionMap
    expires_at: float
    
    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class PermissionCache:
    """TTL cache of resolved permission maps keyed by subject.
    
    A TTL of zero disables the cache: ``get`` always misses and ``set`` is a
    no-op. ``get``/``set``/``delete``/``clear`` never await and are guarded by
    one lock, so they are safe to call from any thread.
    
    The expiry sweep runs as an asyncio task owned by the cache. It starts at
    construction when an event loop is running, otherwise on the first
    ``get`` or ``set`` made from inside a loop, and stops on ``close()``.
    """
    
    def __init__(
        self,
        ttl_seconds: float,
        cleanup_interval_seconds: float = CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize permission cache.
        
        Args:
            ttl_seconds: Lifetime of an entry, 0 disables caching
            cleanup_interval_seconds: Interval between expiry sweeps
            clock: Monotonic time source in seconds
        """
        if ttl_seconds < 0:
            raise ValueError("TTL cannot be negative")
        if cleanup_interval_seconds <= 0:
            raise ValueError("Cleanup interval must be positive")
        
        self.ttl_seconds = ttl_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock
        
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.RLock()
        
        self._cleanup_task: Optional[asyncio.Task] = None
        self._closed = False
        
        self._start_cleanup_task()
    
    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    def _start_cleanup_task(self) -> None:
        """Start the sweep task if it is needed and a loop is running."""
        if self._closed or not self.enabled:
            return
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        
        self._cleanup_task = loop.create_task(self._cleanup_loop())
    
    async def _cleanup_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.cleanup_interval_seconds)
                removed = self.cleanup_expired()
                if removed:
                    logger.debug(f"Permission cache sweep removed {removed} expired entries")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning(f"Permission cache cleanup error: {e}")
    
    def get(self, key: CacheKey) -> Optional[PermissionMap]:
        """Get cached permissions, None when absent, expired or disabled."""
        if not self.enabled:
            return None
        
        self._start_cleanup_task()
        
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(self._clock()):
                return None
            return entry.permissions
    
    def set(self, key: CacheKey, permissions: PermissionMap) -> None:
        """Store or overwrite the permissions of a subject."""
        if not self.enabled:
            return
        
        self._start_cleanup_task()
        
        with self._lock:
            self._entries[key] = CacheEntry(
                permissions=permissions,
                expires_at=self._clock() + self.ttl_seconds,
            )
    
    def delete(self, key: CacheKey) -> None:
        """Invalidate one subject."""
        with self._lock:
            self._entries.pop(key, None)
    
    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
    
    def cleanup_expired(self) -> int:
        """Remove expired entries.
        
        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired_keys = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired_keys:
                del self._entries[key]
            return len(expired_keys)
    
    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet swept."""
        with self._lock:
            return len(self._entries)
    
    async def close(self) -> None:
        """Stop the sweep task. A cache can be closed only once."""
        if self._closed:
            raise PermissionCacheClosedError("Permission cache is already closed")
        self._closed = True
        
        task = self._cleanup_task
        self._cleanup_task = None
        if task is None or task.done():
            return
        
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
