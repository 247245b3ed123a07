"""Topic registry: one publisher binding per topic."""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING
from uuid import uuid4

from topicrelay.core.errors import TopicAlreadyBound
from topicrelay.core.keys import KeyScheme

if TYPE_CHECKING:
    from topicrelay.backends.base import Backend

logger = logging.getLogger("topicrelay.topics")


def new_id() -> str:
    return str(uuid4())


class TopicRegistry:
    """Owns the publisher-identity invariant per topic.

    A topic is "registered" exactly when its publisher key holds a value.
    Registration is check-then-set without a transaction: two concurrent
    registrations of the same unbound topic may both succeed and the later
    SET wins. The registry itself never overwrites a binding it has seen.
    """

    def __init__(
        self,
        backend: "Backend",
        keys: KeyScheme | None = None,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.backend = backend
        self.keys = keys or KeyScheme()
        self._new_id = id_factory

    async def get_binding(self, topic: str) -> str | None:
        """Return the publisher id bound to ``topic``, or None."""
        return await self.backend.get(self.keys.publisher(topic))

    async def is_bound(self, topic: str) -> bool:
        return await self.get_binding(topic) is not None

    async def register_publisher(self, topic: str) -> str:
        """Bind a freshly generated publisher id to ``topic``.

        Raises:
            TopicAlreadyBound: If the topic already has a publisher.
            StoreError: If the backend fails.
        """
        if await self.is_bound(topic):
            raise TopicAlreadyBound(topic)

        publisher_id = self._new_id()
        await self.backend.set(self.keys.publisher(topic), publisher_id)
        logger.info(
            "Registered publisher",
            extra={"operation": "register_publisher", "topic": topic, "publisher_id": publisher_id},
        )
        return publisher_id
