from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional


class AsyncMemoryRedis:
    """In-process stand-in for the subset of redis.asyncio the document store uses.

    Values are stored as strings, matching a client created with
    ``decode_responses=True``.
    """

    def __init__(self) -> None:
        self._kv: Dict[str, str] = {}
        self._sets: Dict[str, set] = {}
        self._lock = asyncio.Lock()

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._kv.get(key)

    async def mget(self, *keys: str) -> List[Optional[str]]:
        async with self._lock:
            return [self._kv.get(k) for k in keys]

    async def set(self, key: str, value: Any, nx: bool = False, xx: bool = False) -> Optional[bool]:
        async with self._lock:
            if nx and key in self._kv:
                return None
            if xx and key not in self._kv:
                return None
            self._kv[key] = str(value)
            return True

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            removed = 0
            for k in keys:
                if self._kv.pop(k, None) is not None:
                    removed += 1
                if self._sets.pop(k, None):
                    removed += 1
            return removed

    async def sadd(self, key: str, *members: Any) -> int:
        async with self._lock:
            s = self._sets.setdefault(key, set())
            before = len(s)
            s.update(str(m) for m in members)
            return len(s) - before

    async def srem(self, key: str, *members: Any) -> int:
        async with self._lock:
            s = self._sets.get(key, set())
            before = len(s)
            for m in members:
                s.discard(str(m))
            return before - len(s)

    async def smembers(self, key: str) -> set:
        async with self._lock:
            return set(self._sets.get(key, set()))
