"""topicrelay - topic-based message relay over Redis."""

from topicrelay.backends import Backend, InMemoryBackend, RedisBackend
from topicrelay.core import (
    ClientError,
    InvalidRequest,
    KeyScheme,
    Relay,
    RelayError,
    RelayStats,
    StoreError,
    SubscriberNotBoundToTopic,
    TopicAlreadyBound,
    TopicNotFound,
    UnauthorizedPublisher,
    UnknownSubscriber,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Relay",
    "RelayStats",
    "KeyScheme",
    # Errors
    "RelayError",
    "ClientError",
    "InvalidRequest",
    "TopicAlreadyBound",
    "TopicNotFound",
    "UnauthorizedPublisher",
    "UnknownSubscriber",
    "SubscriberNotBoundToTopic",
    "StoreError",
    # Backends
    "Backend",
    "InMemoryBackend",
    "RedisBackend",
    # Meta
    "__version__",
]
