"""In-memory backend using plain dicts and deques."""

from collections import deque

from topicrelay.core.errors import StoreError


class InMemoryBackend:
    """Process-local backend with Redis-like semantics.

    This backend is suitable for development and testing. It provides
    no durability guarantees: everything is lost when the process exits.
    Like Redis, a list key and a string key cannot share a name, and a list
    disappears once its last element is popped.
    """

    def __init__(self) -> None:
        self._strings: dict[str, str] = {}
        self._lists: dict[str, deque[str]] = {}

    def _check_type(self, key: str, want_list: bool) -> None:
        wrong = key in self._strings if want_list else key in self._lists
        if wrong:
            raise StoreError(f"WRONGTYPE operation against key {key!r}")

    async def get(self, key: str) -> str | None:
        self._check_type(key, want_list=False)
        return self._strings.get(key)

    async def set(self, key: str, value: str) -> None:
        self._lists.pop(key, None)
        self._strings[key] = value

    async def append_to_list(self, key: str, value: str) -> None:
        self._check_type(key, want_list=True)
        self._lists.setdefault(key, deque()).append(value)

    async def pop_front(self, key: str) -> str | None:
        self._check_type(key, want_list=True)
        items = self._lists.get(key)
        if not items:
            return None
        value = items.popleft()
        if not items:
            del self._lists[key]
        return value

    async def range_of_list(self, key: str, start: int, end: int) -> list[str]:
        self._check_type(key, want_list=True)
        items = list(self._lists.get(key, ()))
        size = len(items)
        if start < 0:
            start = max(size + start, 0)
        if end < 0:
            end = size + end
        # LRANGE end is inclusive
        return items[start : end + 1]

    async def close(self) -> None:
        """Drop all stored data."""
        self._strings.clear()
        self._lists.clear()

    def list_length(self, key: str) -> int:
        """Return the length of the list at ``key`` (0 if absent)."""
        return len(self._lists.get(key, ()))
