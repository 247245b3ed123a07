"""Backend implementations for the relay's store."""

from topicrelay.backends.base import Backend
from topicrelay.backends.inmemory import InMemoryBackend
from topicrelay.backends.redis_backend import BackendHealth, RedisBackend

__all__ = ["Backend", "BackendHealth", "InMemoryBackend", "RedisBackend"]
