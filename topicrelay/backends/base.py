"""Backend protocol for the key/value + list store.

ALL durable state lives in the backend. The registries, the channel and the
delivery coordinator hold no state of their own beyond a backend reference.
"""

from typing import Protocol


class Backend(Protocol):
    """Protocol defining the primitive store operations the relay relies on.

    Every method either returns a value (``None`` meaning absent) or raises
    ``StoreError``. Implementations must not retry on their own.
    """

    async def get(self, key: str) -> str | None:
        """Return the string stored at ``key``, or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store ``value`` at ``key``, overwriting any previous value."""
        ...

    async def append_to_list(self, key: str, value: str) -> None:
        """Append ``value`` to the tail of the list at ``key`` (RPUSH)."""
        ...

    async def pop_front(self, key: str) -> str | None:
        """Remove and return the head of the list at ``key`` (LPOP)."""
        ...

    async def range_of_list(self, key: str, start: int, end: int) -> list[str]:
        """Return list elements ``start``..``end`` inclusive without removing them (LRANGE).

        Negative indices count from the tail, as in Redis.
        """
        ...

    async def close(self) -> None:
        ...
