"""HTTP transport for the relay."""

from topicrelay.apps.http.server import create_app

__all__ = ["create_app"]
