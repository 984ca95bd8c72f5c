"""Analysis cache with TTL and glob-pattern invalidation."""

import fnmatch
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple


class AnalysisCache(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def clear_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (e.g. 'analysis:user-1:*'); return count."""
        ...


class InMemoryAnalysisCache(AnalysisCache):
    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at < time.monotonic():
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = time.monotonic()
        for expired in [k for k, (expires_at, _) in self._entries.items() if expires_at < now]:
            del self._entries[expired]
        self._entries[key] = (now + ttl_seconds, value)

    async def clear_pattern(self, pattern: str) -> int:
        keys = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
        for k in keys:
            del self._entries[k]
        return len(keys)
