"""A small thread-safe in-memory cache."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Hashable, Protocol


class Cache(Protocol):
    """Key-value cache used by the coupon service."""

    def get(self, key: Hashable, default: Any = None) -> Any: ...

    def set(self, key: Hashable, value: Any) -> None: ...

    def delete(self, key: Hashable) -> None: ...


class LRUCache:
    """Bounded cache that drops the least recently stored entry when full."""

    def __init__(self, capacity: int = 100) -> None:
        self.capacity = capacity
        self._entries: OrderedDict[Hashable, Any] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            return self._entries.get(key, default)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries