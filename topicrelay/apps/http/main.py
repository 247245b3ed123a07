"""HTTP relay service entrypoint.

Usage:
    python -m topicrelay.apps.http.main
    python -m topicrelay.apps.http.main --port 9000 --redis-url redis://cache:6379/0

Flags override the ``RELAY_*`` environment variables read by ``Settings``.
"""

import argparse
import dataclasses
import sys

import uvicorn

from topicrelay.apps.http.server import create_app
from topicrelay.backends.redis_backend import RedisBackend
from topicrelay.config import Settings
from topicrelay.core.keys import KeyScheme
from topicrelay.core.logging import configure_logging
from topicrelay.core.relay import Relay


def parse_args(argv: list[str] | None = None, base: Settings | None = None) -> Settings:
    """Merge command-line flags over ``base`` (environment settings by default)."""
    base = base or Settings.from_env()
    parser = argparse.ArgumentParser(description="Topic-based message relay over Redis")
    parser.add_argument("--redis-url", default=base.redis_url)
    parser.add_argument("--host", default=base.host)
    parser.add_argument("--port", type=int, default=base.port)
    parser.add_argument("--body-limit", type=int, default=base.body_limit)
    parser.add_argument("--max-reconnect-retries", type=int, default=base.max_reconnect_retries)
    parser.add_argument(
        "--reconnect-base-delay-ms", type=int, default=base.reconnect_base_delay_ms
    )
    parser.add_argument("--key-prefix", default=base.key_prefix)
    parser.add_argument("--log-level", default=base.log_level)
    args = parser.parse_args(argv)
    return dataclasses.replace(
        base,
        redis_url=args.redis_url,
        host=args.host,
        port=args.port,
        body_limit=args.body_limit,
        max_reconnect_retries=args.max_reconnect_retries,
        reconnect_base_delay_ms=args.reconnect_base_delay_ms,
        key_prefix=args.key_prefix,
        log_level=args.log_level.upper(),
    )


def build_relay(settings: Settings) -> Relay:
    backend = RedisBackend(
        redis_url=settings.redis_url,
        max_reconnect_retries=settings.max_reconnect_retries,
        reconnect_base_delay_ms=settings.reconnect_base_delay_ms,
    )
    return Relay(backend, keys=KeyScheme(prefix=settings.key_prefix))


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the relay service."""
    try:
        settings = parse_args(argv)
        configure_logging(settings.log_level)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    app = create_app(build_relay(settings), body_limit=settings.body_limit)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
