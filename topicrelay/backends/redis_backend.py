"""Redis backend.

Features:
- GET/SET for publisher bindings and subscription records
- RPUSH/LPOP/LRANGE for topic channels
- Connection pooling
- Background reconnection with exponential backoff and a bounded retry budget
- Health checks
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar
from urllib.parse import urlparse, urlunparse

from redis import exceptions as redis_exceptions
from redis.asyncio import ConnectionPool, Redis

from topicrelay.core.errors import StoreError

logger = logging.getLogger("topicrelay.redis")

T = TypeVar("T")

DEFAULT_MAX_RECONNECT_RETRIES = 16
DEFAULT_RECONNECT_BASE_DELAY_MS = 10
# 10ms * 2**10 = 10240ms ceiling
MAX_BACKOFF_EXPONENT = 10

_CONNECTION_ERRORS = (
    redis_exceptions.ConnectionError,
    redis_exceptions.TimeoutError,
    OSError,
)


def _sanitize_url(url: str) -> str:
    """Mask password in Redis URL for logging."""
    try:
        parsed = urlparse(url)
        if parsed.password:
            netloc = f"{parsed.username or ''}:****@{parsed.hostname}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(
                (parsed.scheme, netloc, parsed.path, parsed.params, parsed.query, parsed.fragment)
            )
        return f"{parsed.hostname}:{parsed.port or 6379}"
    except ValueError:
        return "<url>"


def backoff_delay_ms(attempt: int, base_delay_ms: int = DEFAULT_RECONNECT_BASE_DELAY_MS) -> int:
    """Delay before reconnect attempt ``attempt`` (0-based)."""
    return base_delay_ms * 2 ** min(attempt, MAX_BACKOFF_EXPONENT)


def _default_client_factory(url: str, pool_size: int) -> Redis:
    pool = ConnectionPool.from_url(url, max_connections=pool_size, decode_responses=True)
    return Redis(connection_pool=pool)


@dataclass
class BackendHealth:
    """Health check result."""

    healthy: bool
    latency_ms: float
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConnectionStats:
    connects: int = 0
    reconnections: int = 0
    reconnect_attempts: int = 0
    connection_errors: int = 0


class RedisBackend:
    """Redis implementation of the ``Backend`` protocol.

    The backend owns one client (and its pool). A connection-level failure
    fails the current call with ``StoreError`` and starts a single background
    reconnect loop; calls made while that loop runs fail fast. Once the loop
    exhausts ``max_reconnect_retries`` attempts it gives up for good.

    Args:
        redis_url: Redis connection URL.
        pool_size: Connection pool size.
        max_reconnect_retries: Reconnect attempts before giving up.
        reconnect_base_delay_ms: Delay of the first reconnect attempt; doubles
            per attempt up to ``2**10`` times the base.
        client_factory: ``(url, pool_size) -> client``; override for tests.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        pool_size: int = 10,
        max_reconnect_retries: int = DEFAULT_MAX_RECONNECT_RETRIES,
        reconnect_base_delay_ms: int = DEFAULT_RECONNECT_BASE_DELAY_MS,
        client_factory: Callable[[str, int], Any] | None = None,
    ) -> None:
        self._url = redis_url
        self._url_safe = _sanitize_url(redis_url)
        self._pool_size = pool_size
        self._max_reconnect_retries = max_reconnect_retries
        self._reconnect_base_delay_ms = reconnect_base_delay_ms
        self._client_factory = client_factory or _default_client_factory

        self._redis: Any = None
        self._connected = False  # True once any connection has succeeded
        self._gave_up = False
        self._reconnect_task: asyncio.Task[None] | None = None
        self._conn_lock = asyncio.Lock()
        self._stats = ConnectionStats()

    @property
    def redis_url(self) -> str:
        return self._url

    @property
    def stats(self) -> ConnectionStats:
        return self._stats

    @property
    def reconnecting(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def gave_up(self) -> bool:
        return self._gave_up

    async def _open_client(self) -> Any:
        """Create a client and verify it with PING. Raises on failure."""
        client = self._client_factory(self._url, self._pool_size)
        try:
            await client.ping()
        except Exception:
            try:
                await client.aclose()
            except Exception as close_err:
                logger.debug(f"Error closing failed client: {close_err}")
            raise
        return client

    async def connect(self) -> None:
        """Open the initial connection.

        Raises:
            StoreError: If Redis cannot be reached. A reconnect loop is
                started in the background before raising.
        """
        async with self._conn_lock:
            if self._redis is not None:
                return
            try:
                self._redis = await self._open_client()
            except _CONNECTION_ERRORS as e:
                self._connection_lost(e)
                raise StoreError(f"Could not connect to Redis at {self._url_safe}", e) from e
            self._connected = True
            self._stats.connects += 1
            logger.info(f"Connected to Redis at {self._url_safe}")

    async def _get_client(self) -> Any:
        if self._redis is not None:
            return self._redis
        if self._gave_up:
            raise StoreError("Redis connection lost and reconnect attempts exhausted")
        if self.reconnecting:
            raise StoreError("Redis connection lost, reconnect in progress")
        # Lazy first connection
        await self.connect()
        return self._redis

    def _connection_lost(self, error: BaseException, failed: Any = None) -> None:
        """Drop the current client and start the reconnect loop if idle.

        ``failed`` is the client the error came from. A late failure on a
        client that has already been replaced leaves the current one alone.
        """
        self._stats.connection_errors += 1
        if failed is not None and failed is not self._redis:
            logger.debug(f"Ignoring failure on a replaced Redis client: {error}")
            return
        old = self._redis
        self._redis = None
        if old is not None:
            asyncio.get_running_loop().create_task(self._close_quietly(old))
        if self._gave_up or self.reconnecting:
            return
        logger.warning(
            f"Redis connection lost: {error}, reconnecting...",
            extra={"error": str(error)},
        )
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_loop())

    async def _close_quietly(self, client: Any) -> None:
        try:
            await client.aclose()
        except Exception as e:
            logger.debug(f"Error closing old connection: {e}")

    async def _reconnect_loop(self) -> None:
        for attempt in range(self._max_reconnect_retries):
            delay_ms = backoff_delay_ms(attempt, self._reconnect_base_delay_ms)
            await asyncio.sleep(delay_ms / 1000)
            self._stats.reconnect_attempts += 1
            try:
                client = await self._open_client()
            except _CONNECTION_ERRORS as e:
                logger.info(
                    f"Reconnect attempt {attempt + 1}/{self._max_reconnect_retries} failed: {e}",
                    extra={"attempt": attempt + 1, "delay_ms": delay_ms, "error": str(e)},
                )
                continue

            async with self._conn_lock:
                self._redis = client
                if self._connected:
                    self._stats.reconnections += 1
                    logger.info(f"Reconnected to Redis at {self._url_safe}")
                else:
                    self._stats.connects += 1
                    logger.info(f"Connected to Redis at {self._url_safe}")
                self._connected = True
            return

        self._gave_up = True
        logger.error(
            f"Failed connecting to Redis at {self._url_safe} after "
            f"{self._max_reconnect_retries} attempts, giving up",
            extra={"attempts": self._max_reconnect_retries},
        )

    async def _call(self, operation: str, key: str, fn: Callable[[Any], Awaitable[T]]) -> T:
        client = await self._get_client()
        try:
            return await fn(client)
        except _CONNECTION_ERRORS as e:
            self._connection_lost(e, client)
            raise StoreError(f"{operation} {key!r} failed: connection lost", e) from e
        except redis_exceptions.RedisError as e:
            raise StoreError(f"{operation} {key!r} failed", e) from e

    async def get(self, key: str) -> str | None:
        return await self._call("GET", key, lambda r: r.get(key))

    async def set(self, key: str, value: str) -> None:
        await self._call("SET", key, lambda r: r.set(key, value))

    async def append_to_list(self, key: str, value: str) -> None:
        await self._call("RPUSH", key, lambda r: r.rpush(key, value))

    async def pop_front(self, key: str) -> str | None:
        return await self._call("LPOP", key, lambda r: r.lpop(key))

    async def range_of_list(self, key: str, start: int, end: int) -> list[str]:
        result = await self._call("LRANGE", key, lambda r: r.lrange(key, start, end))
        return list(result or [])

    async def health(self) -> BackendHealth:
        """Check backend health."""
        start = time.monotonic()
        try:
            client = await self._get_client()
            await client.ping()
            return BackendHealth(
                healthy=True,
                latency_ms=(time.monotonic() - start) * 1000,
                details={
                    "redis": self._url_safe,
                    "reconnections": self._stats.reconnections,
                },
            )
        except (StoreError, *_CONNECTION_ERRORS, redis_exceptions.RedisError) as e:
            return BackendHealth(
                healthy=False,
                latency_ms=(time.monotonic() - start) * 1000,
                details={
                    "error": str(e),
                    "reconnecting": self.reconnecting,
                    "gave_up": self._gave_up,
                },
            )

    async def close(self) -> None:
        """Stop reconnecting and close the Redis connection."""
        if self.reconnecting:
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
        self._reconnect_task = None
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Closed Redis connection")

    async def delete(self, *keys: str) -> None:
        """Delete keys (for testing)."""
        if keys:
            await self._call("DEL", keys[0], lambda r: r.delete(*keys))
