"""
In-memory response cache with per-entry expiry.
"""

import json
import time
from typing import Dict, Optional, Any, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass
class CacheEntry:
    """Represents a cached entry."""
    key: str
    value: Any
    created_at: datetime
    expires_at: Optional[datetime] = None
    access_count: int = 0
    last_accessed: Optional[datetime] = None


class CacheStats:
    """Cache performance statistics."""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.evictions = 0
        self.start_time = time.time()

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
            "uptime_seconds": time.time() - self.start_time
        }


def make_cache_key(operation: str, *parts: Any) -> str:
    """Build a stable cache key from an operation name and its arguments.

    Dict arguments are serialized with sorted keys so that two option
    mappings with the same content map to the same key.
    """
    encoded = [json.dumps(part, sort_keys=True, default=str) for part in parts]
    return "-".join([operation] + encoded)


class ResponseCache:
    """LRU-evicting in-memory cache for remote read responses."""

    def __init__(self, max_size: int = 256, default_ttl: Optional[float] = 300):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.entries: Dict[str, CacheEntry] = {}
        self.stats = CacheStats()

    def _is_expired(self, entry: CacheEntry) -> bool:
        if entry.expires_at is None:
            return False
        return datetime.now() > entry.expires_at

    def _evict_if_needed(self):
        if len(self.entries) >= self.max_size:
            oldest_key = min(
                self.entries.keys(),
                key=lambda k: self.entries[k].last_accessed or self.entries[k].created_at
            )
            del self.entries[oldest_key]
            self.stats.evictions += 1

    def lookup(self, key: str) -> Tuple[bool, Any]:
        """Return ``(hit, value)`` so that cached ``None`` values still count as hits."""
        entry = self.entries.get(key)
        if entry is None:
            self.stats.misses += 1
            return False, None

        if self._is_expired(entry):
            del self.entries[key]
            self.stats.misses += 1
            return False, None

        entry.access_count += 1
        entry.last_accessed = datetime.now()
        self.stats.hits += 1
        return True, entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        """Set value in cache. A ttl of 0 or less disables expiry."""
        if key not in self.entries:
            self._evict_if_needed()

        ttl = self.default_ttl if ttl is None else ttl
        now = datetime.now()
        self.entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl) if ttl and ttl > 0 else None,
            last_accessed=now
        )
        self.stats.sets += 1

    def clear(self):
        """Clear all cache entries."""
        self.entries.clear()
