"""Process configuration read from the environment."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from topicrelay.backends.redis_backend import (
    DEFAULT_MAX_RECONNECT_RETRIES,
    DEFAULT_RECONNECT_BASE_DELAY_MS,
)

ENV_PREFIX = "RELAY_"
DEFAULT_BODY_LIMIT = 128_000


def _int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP relay service.

    Attributes:
        redis_url: Redis connection URL.
        host: Interface the HTTP server binds to.
        port: HTTP port.
        body_limit: Maximum accepted request body, in bytes.
        max_reconnect_retries: Redis reconnect attempts before giving up.
        reconnect_base_delay_ms: First reconnect delay; doubles per attempt.
        key_prefix: Namespace prepended to every store key.
        log_level: Level name for the ``topicrelay`` logger.
    """

    redis_url: str = "redis://localhost:6379"
    host: str = "0.0.0.0"
    port: int = 8080
    body_limit: int = DEFAULT_BODY_LIMIT
    max_reconnect_retries: int = DEFAULT_MAX_RECONNECT_RETRIES
    reconnect_base_delay_ms: int = DEFAULT_RECONNECT_BASE_DELAY_MS
    key_prefix: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``RELAY_*`` variables, falling back to defaults.

        Raises:
            ValueError: If a numeric variable is not a valid integer.
        """
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            redis_url=env.get(ENV_PREFIX + "REDIS_URL", defaults.redis_url),
            host=env.get(ENV_PREFIX + "HOST", defaults.host),
            port=_int(env, "PORT", defaults.port, minimum=1),
            body_limit=_int(env, "BODY_LIMIT", defaults.body_limit, minimum=1),
            max_reconnect_retries=_int(env, "MAX_RECONNECT_RETRIES", defaults.max_reconnect_retries),
            reconnect_base_delay_ms=_int(
                env, "RECONNECT_BASE_DELAY_MS", defaults.reconnect_base_delay_ms
            ),
            key_prefix=env.get(ENV_PREFIX + "KEY_PREFIX", defaults.key_prefix),
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
        )
