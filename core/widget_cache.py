"""In-memory TTL cache for dashboard widgets.

A `WidgetCache` is an explicit object owned by whoever serves the dashboard:
it is created at application start-up and cleared per user on sign-out, so
no state leaks between tests or processes through module globals.

Entries are keyed by ``"<user_id>:<key>"`` and stamped with the time they
were produced and a version tag. An entry is served only while its age does
not exceed its TTL *and* its version matches the caller's; anything else
triggers the producer again and overwrites the entry.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from core.logger import get_logger

logger = get_logger("core.widget_cache")

DEFAULT_TTL = 5 * 60
CACHE_VERSION = "v1.0.0"


@dataclass
class CacheEntry:
    data: Any
    timestamp: float
    version: str
    ttl: float


@dataclass
class WidgetState:
    """Observable status of one widget key."""

    loading: bool = False
    error: Optional[BaseException] = None
    cached: bool = False
    last_updated: Optional[datetime] = None


@dataclass
class CachedResult:
    data: Any
    cached: bool
    loading: bool = False
    error: Optional[BaseException] = None
    last_updated: Optional[datetime] = None


@dataclass
class WidgetCache:
    """Per-process TTL + version cache for async data producers.

    Args:
        clock: Monotonic seconds source; injectable for tests.
        enabled: When False every fetch goes to the producer.
    """

    clock: Callable[[], float] = time.monotonic
    enabled: bool = True
    _entries: Dict[str, CacheEntry] = field(default_factory=dict)
    _states: Dict[str, WidgetState] = field(default_factory=dict)

    @staticmethod
    def full_key(key: str, user_id: Optional[str] = None) -> str:
        return f"{user_id}:{key}" if user_id else key

    def _is_valid(self, entry: CacheEntry, ttl: float, version: str) -> bool:
        if not self.enabled:
            return False
        if entry.version != version:
            return False
        return self.clock() - entry.timestamp <= ttl

    def get(self, key: str, ttl: float = DEFAULT_TTL, version: str = CACHE_VERSION,
            user_id: Optional[str] = None) -> Optional[Any]:
        """Return cached data, or None when missing, expired or stale-versioned.

        Invalid entries are dropped on read.
        """
        entry = self._lookup(self.full_key(key, user_id), ttl, version)
        return entry.data if entry is not None else None

    def _lookup(self, full: str, ttl: float, version: str) -> Optional[CacheEntry]:
        if not self.enabled:
            return None
        entry = self._entries.get(full)
        if entry is None:
            return None
        if self._is_valid(entry, ttl, version):
            logger.debug("WidgetCache hit for %s", full)
            return entry
        logger.debug("WidgetCache expired for %s", full)
        del self._entries[full]
        return None

    def set(self, key: str, data: Any, ttl: float = DEFAULT_TTL, version: str = CACHE_VERSION,
            user_id: Optional[str] = None) -> None:
        if not self.enabled:
            return
        full = self.full_key(key, user_id)
        self._entries[full] = CacheEntry(data=data, timestamp=self.clock(), version=version, ttl=ttl)
        logger.debug("WidgetCache stored %s", full)
        self.purge_expired()

    async def fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl: float = DEFAULT_TTL,
        version: str = CACHE_VERSION,
        user_id: Optional[str] = None,
        force_refresh: bool = False,
    ) -> CachedResult:
        """Serve ``key`` from cache or await ``producer`` and store its result.

        Producer exceptions are recorded on the widget state and re-raised;
        the previous entry, if any, is left untouched.
        """
        full = self.full_key(key, user_id)
        state = self._states.setdefault(full, WidgetState())

        if not force_refresh:
            entry = self._lookup(full, ttl, version)
            if entry is not None:
                state.loading = False
                state.error = None
                state.cached = True
                return CachedResult(data=entry.data, cached=True, last_updated=state.last_updated)

        state.loading = True
        state.error = None
        try:
            logger.debug("WidgetCache fetching fresh data for %s", full)
            data = await producer()
        except Exception as exc:
            state.loading = False
            state.error = exc
            state.cached = False
            logger.warning("WidgetCache producer failed for %s: %s", full, exc)
            raise

        self.set(key, data, ttl, version, user_id)
        state.loading = False
        state.cached = False
        state.last_updated = datetime.now(timezone.utc)
        return CachedResult(data=data, cached=False, last_updated=state.last_updated)

    async def refresh(self, key: str, producer: Callable[[], Awaitable[Any]], ttl: float = DEFAULT_TTL,
                      version: str = CACHE_VERSION, user_id: Optional[str] = None) -> CachedResult:
        """Bypass the cache and overwrite the entry."""
        return await self.fetch(key, producer, ttl, version, user_id, force_refresh=True)

    def state(self, key: str, user_id: Optional[str] = None) -> WidgetState:
        return self._states.get(self.full_key(key, user_id), WidgetState())

    def invalidate(self, key: str, user_id: Optional[str] = None) -> bool:
        full = self.full_key(key, user_id)
        self._states.pop(full, None)
        return self._entries.pop(full, None) is not None

    def clear_user(self, user_id: str) -> int:
        """Drop every entry belonging to ``user_id``; used on sign-out."""
        prefix = f"{user_id}:"
        keys = [k for k in self._entries if k.startswith(prefix)]
        for k in keys:
            del self._entries[k]
        for k in [k for k in self._states if k.startswith(prefix)]:
            del self._states[k]
        logger.info("WidgetCache cleared %s entries for user %s", len(keys), user_id)
        return len(keys)

    def purge_expired(self) -> int:
        """Drop entries past their TTL and idle states left without an entry.

        Runs on every write so abandoned users do not accumulate.
        """
        now = self.clock()
        expired = [k for k, e in self._entries.items() if now - e.timestamp > e.ttl]
        for k in expired:
            del self._entries[k]
        for k in [k for k, s in self._states.items() if k not in self._entries and not s.loading]:
            del self._states[k]
        if expired:
            logger.debug("WidgetCache purged %s expired entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._states.clear()

    def stats(self) -> Dict[str, Any]:
        now = self.clock()
        return {
            "total_entries": len(self._entries),
            "tracked_states": len(self._states),
            "entries": [
                {"key": k, "age": now - e.timestamp, "version": e.version}
                for k, e in self._entries.items()
            ],
        }
