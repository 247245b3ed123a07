"""Core components for the topicrelay message relay.

Types:
    Relay: Caller-facing facade (register, publish, subscribe, get, ack).
    RelayStats: Counters snapshot returned by ``Relay.get_stats``.
    TopicRegistry: Publisher binding per topic.
    SubscriptionRegistry: Subscriber records and topic authorization.
    MessageChannel: Per-topic FIFO of timestamped messages.
    DeliveryCoordinator: Visibility rule and peek/ack decisions.
    Message, Subscription: Records persisted in the store.
    KeyScheme: Store key layout.

Errors:
    RelayError: Base class.
    ClientError: Expected, caller-caused failures (see subclasses).
    StoreError: Backend call failed.
"""

from topicrelay.core.channel import MessageChannel
from topicrelay.core.clock import MonotonicClock
from topicrelay.core.delivery import DeliveryCoordinator
from topicrelay.core.errors import (
    ClientError,
    InvalidRequest,
    RelayError,
    StoreError,
    SubscriberNotBoundToTopic,
    TopicAlreadyBound,
    TopicNotFound,
    UnauthorizedPublisher,
    UnknownSubscriber,
)
from topicrelay.core.keys import KeyScheme
from topicrelay.core.models import Message, Subscription
from topicrelay.core.relay import Relay, RelayStats
from topicrelay.core.subscriptions import SubscriptionRegistry
from topicrelay.core.topics import TopicRegistry

__all__ = [
    "Relay",
    "RelayStats",
    "TopicRegistry",
    "SubscriptionRegistry",
    "MessageChannel",
    "DeliveryCoordinator",
    "Message",
    "Subscription",
    "KeyScheme",
    "MonotonicClock",
    "RelayError",
    "ClientError",
    "InvalidRequest",
    "TopicAlreadyBound",
    "TopicNotFound",
    "UnauthorizedPublisher",
    "UnknownSubscriber",
    "SubscriberNotBoundToTopic",
    "StoreError",
]
