"""Process-local cache with per-entry expiry."""
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Small key/value cache where every entry expires after ``ttl`` seconds"""

    def __init__(self, default_ttl: int = 3600, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return default
        return value

    def put(self, key: Hashable, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (self._clock() + ttl, value)

    def remember(self, key: Hashable, factory: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value for ``key``, computing and storing it when absent"""
        sentinel = object()
        value = self.get(key, sentinel)
        if value is sentinel:
            value = factory()
            self.put(key, value, ttl)
        return value

    def forget(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def forget_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if isinstance(k, str) and k.startswith(prefix)]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self) -> int:
        return len(self._entries)
