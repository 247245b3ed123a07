"""Per-topic FIFO channel of timestamped messages."""

from typing import TYPE_CHECKING

from pydantic import ValidationError

from topicrelay.core.clock import Clock, MonotonicClock
from topicrelay.core.errors import StoreError
from topicrelay.core.keys import KeyScheme
from topicrelay.core.models import Message

if TYPE_CHECKING:
    from topicrelay.backends.base import Backend


class MessageChannel:
    """Append at the tail, read or remove at the head.

    The channel is unbounded; nothing here trims old messages.
    """

    def __init__(
        self,
        backend: "Backend",
        keys: KeyScheme | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.backend = backend
        self.keys = keys or KeyScheme()
        self.clock = clock or MonotonicClock()

    @staticmethod
    def _decode(topic: str, raw: str) -> Message:
        try:
            return Message.from_json(raw)
        except ValidationError as e:
            raise StoreError(f"Corrupt message in channel {topic!r}", e) from e

    async def append(self, topic: str, payload: str) -> Message:
        """Stamp ``payload`` with the current time and push it to the tail."""
        message = Message(payload=payload, published_at=self.clock())
        await self.backend.append_to_list(self.keys.channel(topic), message.to_json())
        return message

    async def peek_head(self, topic: str) -> Message | None:
        """Return the oldest message without removing it."""
        head = await self.backend.range_of_list(self.keys.channel(topic), 0, 0)
        if not head:
            return None
        return self._decode(topic, head[0])

    async def pop_head(self, topic: str) -> Message | None:
        """Remove and return the oldest message."""
        raw = await self.backend.pop_front(self.keys.channel(topic))
        if raw is None:
            return None
        return self._decode(topic, raw)
