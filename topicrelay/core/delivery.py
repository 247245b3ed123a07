"""Delivery coordinator: visibility and peek/ack decisions.

For a subscriber and a topic the coordinator:

1. resolves the subscription (unknown id / wrong topic are errors),
2. reads the channel head,
3. hides the head if it was published before the subscription existed,
4. returns it (peek) or pops it and returns what was popped (ack).

There is one shared FIFO per topic, not one cursor per subscriber. A message
that predates every current subscriber therefore stays at the head and hides
everything behind it from those subscribers.
"""

import logging

from topicrelay.core.channel import MessageChannel
from topicrelay.core.subscriptions import SubscriptionRegistry

logger = logging.getLogger("topicrelay.delivery")


class DeliveryCoordinator:
    def __init__(self, subscriptions: SubscriptionRegistry, channel: MessageChannel) -> None:
        self.subscriptions = subscriptions
        self.channel = channel

    async def deliver(self, subscriber_id: str, topic: str, destructive: bool) -> str | None:
        """Return the head payload visible to the subscriber, or None.

        Args:
            subscriber_id: Id issued by ``SubscriptionRegistry.register_subscriber``.
            topic: Topic named in the request; must match the subscription.
            destructive: Pop the head (ack) instead of only reading it (peek).

        Raises:
            UnknownSubscriber: The id was never issued.
            SubscriberNotBoundToTopic: The id belongs to another topic.
            StoreError: A backend call failed.
        """
        subscription = await self.subscriptions.resolve(subscriber_id, topic)

        head = await self.channel.peek_head(topic)
        if head is None:
            return None

        if not subscription.can_see(head):
            logger.debug(
                "Head message predates subscription",
                extra={
                    "operation": "ack" if destructive else "peek",
                    "topic": topic,
                    "subscriber_id": subscriber_id,
                    "subscribed_at": subscription.subscribed_at,
                    "published_at": head.published_at,
                },
            )
            return None

        if not destructive:
            return head.payload

        # Another consumer may have popped the head since the peek above
        popped = await self.channel.pop_head(topic)
        if popped is None:
            return None
        return popped.payload

    async def peek(self, subscriber_id: str, topic: str) -> str | None:
        return await self.deliver(subscriber_id, topic, destructive=False)

    async def ack(self, subscriber_id: str, topic: str) -> str | None:
        return await self.deliver(subscriber_id, topic, destructive=True)
