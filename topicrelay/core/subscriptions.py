"""Subscription registry."""

import logging
from collections.abc import Callable

from pydantic import ValidationError

from topicrelay.core.clock import Clock, MonotonicClock
from topicrelay.core.errors import (
    StoreError,
    SubscriberNotBoundToTopic,
    TopicNotFound,
    UnknownSubscriber,
)
from topicrelay.core.keys import KeyScheme
from topicrelay.core.models import Subscription
from topicrelay.core.topics import TopicRegistry, new_id

logger = logging.getLogger("topicrelay.subscriptions")


class SubscriptionRegistry:
    """Issues subscriber ids and resolves them back to their topic.

    Args:
        topics: Registry used to check that a topic exists before subscribing.
        clock: Source of the ``subscribed_at`` watermark (epoch ms).
        id_factory: Subscriber id generator.
    """

    def __init__(
        self,
        topics: TopicRegistry,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.topics = topics
        self.backend = topics.backend
        self.keys: KeyScheme = topics.keys
        self.clock = clock or MonotonicClock()
        self._new_id = id_factory

    async def register_subscriber(self, topic: str) -> str:
        """Subscribe to ``topic`` and return the new subscriber id.

        Raises:
            TopicNotFound: If no publisher is bound to the topic.
        """
        if not await self.topics.is_bound(topic):
            raise TopicNotFound(topic)

        subscription = Subscription(
            subscriber_id=self._new_id(),
            topic=topic,
            subscribed_at=self.clock(),
        )
        await self.backend.set(
            self.keys.subscription(subscription.subscriber_id), subscription.to_json()
        )
        logger.info(
            "Registered subscriber",
            extra={
                "operation": "subscribe",
                "topic": topic,
                "subscriber_id": subscription.subscriber_id,
            },
        )
        return subscription.subscriber_id

    async def lookup(self, subscriber_id: str) -> Subscription | None:
        """Return the stored subscription, or None for an unknown id.

        Raises:
            StoreError: If the stored record cannot be decoded.
        """
        raw = await self.backend.get(self.keys.subscription(subscriber_id))
        if raw is None:
            return None
        try:
            return Subscription.from_json(raw)
        except ValidationError as e:
            raise StoreError(f"Corrupt subscription record for {subscriber_id!r}", e) from e

    async def resolve(self, subscriber_id: str, topic: str) -> Subscription:
        """Look up ``subscriber_id`` and check it is bound to ``topic``.

        Raises:
            UnknownSubscriber: No record for the id.
            SubscriberNotBoundToTopic: The record names a different topic.
        """
        subscription = await self.lookup(subscriber_id)
        if subscription is None:
            raise UnknownSubscriber(subscriber_id)
        if subscription.topic != topic:
            raise SubscriberNotBoundToTopic(subscriber_id, topic)
        return subscription
