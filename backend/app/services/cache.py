"""
Caching Service for external lookups.

Simple memory-based TTL cache used by the PNR and train-data clients.
Entries expire after a fixed TTL; once the size cap is exceeded the
oldest inserted entry is evicted.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional


class TTLCache:

    def __init__(self, ttl_seconds: int = 300, max_entries: int = 1000):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        # dicts keep insertion order, the first key is the oldest entry
        self._store: Dict[str, dict] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if not entry:
            return None

        if datetime.now(timezone.utc) > entry["expires_at"]:
            del self._store[key]
            return None

        return entry["data"]

    def set(self, key: str, data: Any) -> None:
        # Re-inserting moves the key to the newest position
        self._store.pop(key, None)
        self._store[key] = {
            "data": data,
            "expires_at": datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)
        }

        if len(self._store) > self.max_entries:
            oldest_key = next(iter(self._store))
            del self._store[oldest_key]

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._store)
