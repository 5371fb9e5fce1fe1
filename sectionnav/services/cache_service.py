"""
In-memory key/value cache with lazy TTL expiration.
Shared substrate for locale preferences, preload markers and translations.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class CacheEntry:
    value: Any
    expiration_timestamp: Optional[float]

    def is_expired(self, now_ms: float) -> bool:
        return self.expiration_timestamp is not None and now_ms > self.expiration_timestamp


class CacheService:
    """Key/value store whose entries expire lazily on read.

    There is no background sweep: an expired entry is removed the next time
    ``get`` or ``has`` touches it. A TTL of zero or less never expires.
    """

    def __init__(self, clock: Callable[[], float] = _now_ms):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def now(self) -> float:
        """Current time in milliseconds according to the cache clock."""
        return self._clock()

    @staticmethod
    def _is_valid_key(key: Any) -> bool:
        return isinstance(key, str) and bool(key)

    def set(self, key: str, value: Any, ttl_ms: float = 0) -> None:
        if not self._is_valid_key(key):
            logger.warning("Invalid cache key, skipping set", key=repr(key))
            return

        expiration = self._clock() + ttl_ms if ttl_ms and ttl_ms > 0 else None
        self._entries[key] = CacheEntry(value=value, expiration_timestamp=expiration)
        logger.debug("Value cached", key=key, expires_at=expiration)

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("Cache entry expired", key=key)
            return None
        return entry

    def get(self, key: str) -> Any:
        if not self._is_valid_key(key):
            return None
        entry = self._live_entry(key)
        return entry.value if entry is not None else None

    def has(self, key: str) -> bool:
        if not self._is_valid_key(key):
            return False
        return self._live_entry(key) is not None

    def delete(self, key: str) -> bool:
        if not self._is_valid_key(key):
            return False
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache cleared", cleared_count=count)
        return count

    def stats(self) -> Dict[str, int]:
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        total = len(self._entries)
        return {"total": total, "expired": expired, "valid": total - expired}
