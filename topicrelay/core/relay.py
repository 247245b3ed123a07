"""Relay: the caller-facing pub/sub operations.

The relay wires the registries, the channel and the delivery coordinator
onto one backend and exposes the five use cases:

    register_publisher → publish → subscribe → get_message / ack_message

It holds no state besides counters; every operation goes straight to the
backend in the order described by each method.
"""

from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from topicrelay.core.channel import MessageChannel
from topicrelay.core.clock import Clock, MonotonicClock
from topicrelay.core.delivery import DeliveryCoordinator
from topicrelay.core.errors import (
    ClientError,
    InvalidRequest,
    StoreError,
    TopicNotFound,
    UnauthorizedPublisher,
)
from topicrelay.core.keys import KeyScheme
from topicrelay.core.logging import get_logger
from topicrelay.core.subscriptions import SubscriptionRegistry
from topicrelay.core.topics import TopicRegistry

if TYPE_CHECKING:
    from topicrelay.backends.base import Backend


@dataclass
class RelayStats:
    """Counters since the relay was created."""

    publishers_registered: int = 0
    messages_published: int = 0
    subscribers_registered: int = 0
    messages_peeked: int = 0
    messages_acked: int = 0
    client_errors: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    store_errors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "publishers_registered": self.publishers_registered,
            "messages_published": self.messages_published,
            "subscribers_registered": self.subscribers_registered,
            "messages_peeked": self.messages_peeked,
            "messages_acked": self.messages_acked,
            "client_errors": dict(self.client_errors),
            "store_errors": self.store_errors,
        }


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequest(f"{name} was not set")
    return value


class Relay:
    """Topic-based message relay over a ``Backend``.

    Args:
        backend: Store adapter shared by all components.
        keys: Key layout; defaults to ``KeyScheme()``.
        clock: Timestamp source shared by subscriptions and the channel so
            watermarks and publish times are comparable.
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
        self.topics = TopicRegistry(backend, self.keys)
        self.subscriptions = SubscriptionRegistry(self.topics, clock=self.clock)
        self.channel = MessageChannel(backend, self.keys, clock=self.clock)
        self.delivery = DeliveryCoordinator(self.subscriptions, self.channel)
        self._log = get_logger("topicrelay.relay")
        self._stats = RelayStats()

    def get_stats(self) -> RelayStats:
        """Return a snapshot of the counters."""
        return RelayStats(
            publishers_registered=self._stats.publishers_registered,
            messages_published=self._stats.messages_published,
            subscribers_registered=self._stats.subscribers_registered,
            messages_peeked=self._stats.messages_peeked,
            messages_acked=self._stats.messages_acked,
            client_errors=defaultdict(int, self._stats.client_errors),
            store_errors=self._stats.store_errors,
        )

    @asynccontextmanager
    async def _operation(self, operation: str, **fields: Any) -> AsyncIterator[None]:
        """Log and count errors leaving an operation, then re-raise them."""
        try:
            yield
        except ClientError as e:
            self._stats.client_errors[e.kind] += 1
            self._log.warning(
                f"{operation} rejected: {e}",
                extra={"operation": operation, "error_kind": e.kind, **fields},
            )
            raise
        except StoreError as e:
            self._stats.store_errors += 1
            self._log.error(
                f"{operation} failed: {e}",
                extra={"operation": operation, "error": str(e), **fields},
            )
            raise

    async def register_publisher(self, topic: str) -> str:
        """Register the single publisher of ``topic`` and return its id.

        Raises:
            TopicAlreadyBound: The topic already has a publisher.
        """
        async with self._operation("register_publisher", topic=topic):
            _require_text("Topic", topic)
            publisher_id = await self.topics.register_publisher(topic)
        self._stats.publishers_registered += 1
        return publisher_id

    async def publish(self, topic: str, publisher_id: str, payload: str) -> None:
        """Append ``payload`` to the topic's channel on behalf of its publisher.

        Raises:
            TopicNotFound: The topic has no publisher.
            UnauthorizedPublisher: ``publisher_id`` is not the bound publisher.
        """
        async with self._operation("publish", topic=topic, publisher_id=publisher_id):
            _require_text("Topic", topic)
            if not isinstance(payload, str):
                raise InvalidRequest("Message must be a string")
            bound = await self.topics.get_binding(topic)
            if bound is None:
                raise TopicNotFound(topic)
            if bound != publisher_id:
                raise UnauthorizedPublisher(topic, publisher_id)
            message = await self.channel.append(topic, payload)
        self._stats.messages_published += 1
        self._log.debug(
            "Published message",
            extra={"operation": "publish", "topic": topic, "published_at": message.published_at},
        )

    async def subscribe(self, topic: str) -> str:
        """Subscribe to an existing topic and return the subscriber id.

        Raises:
            TopicNotFound: The topic has no publisher.
        """
        async with self._operation("subscribe", topic=topic):
            _require_text("Topic", topic)
            subscriber_id = await self.subscriptions.register_subscriber(topic)
        self._stats.subscribers_registered += 1
        return subscriber_id

    async def get_message(self, subscriber_id: str, topic: str) -> str | None:
        """Peek at the head message; None when nothing is visible."""
        async with self._operation("get_message", topic=topic, subscriber_id=subscriber_id):
            _require_text("Topic", topic)
            _require_text("Subscriber id", subscriber_id)
            payload = await self.delivery.peek(subscriber_id, topic)
        if payload is not None:
            self._stats.messages_peeked += 1
        return payload

    async def ack_message(self, subscriber_id: str, topic: str) -> str | None:
        """Consume the head message; None when nothing is visible.

        Each successful call removes a different message.
        """
        async with self._operation("ack_message", topic=topic, subscriber_id=subscriber_id):
            _require_text("Topic", topic)
            _require_text("Subscriber id", subscriber_id)
            payload = await self.delivery.ack(subscriber_id, topic)
        if payload is not None:
            self._stats.messages_acked += 1
        return payload

    async def close(self) -> None:
        await self.backend.close()
