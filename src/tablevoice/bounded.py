"""Fixed-capacity containers for match/context history and the entity cache."""

from collections import OrderedDict, deque
from collections.abc import Hashable, Iterator
from typing import Any


class RingBuffer:
    """Keep the most recent ``capacity`` items, newest first.

    Appending to a full buffer evicts the oldest item.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: deque[Any] = deque(maxlen=capacity)

    def append(self, item: Any) -> None:
        """Add an item as the most recent entry."""
        self._items.appendleft(item)

    def latest(self, n: int | None = None) -> list[Any]:
        """Return up to ``n`` items, most recent first (all items if ``n`` is None)."""
        if n is None:
            return list(self._items)
        if n <= 0:
            return []
        return [item for _, item in zip(range(n), self._items)]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)


class LRUCache:
    """Least-recently-used cache with an explicit capacity.

    Reads refresh recency; inserting past capacity evicts the least recently
    used key. Entries never expire by time.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._data: OrderedDict[Hashable, Any] = OrderedDict()

    def get(self, key: Hashable, default: Any = None) -> Any:
        if key not in self._data:
            return default
        self._data.move_to_end(key)
        return self._data[key]

    def put(self, key: Hashable, value: Any) -> None:
        if key in self._data:
            self._data.move_to_end(key)
        self._data[key] = value
        while len(self._data) > self.capacity:
            self._data.popitem(last=False)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
