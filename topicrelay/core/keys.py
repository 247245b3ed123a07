"""Store key layout."""

from dataclasses import dataclass

PUBLISHER_TAG = "pub:"
SUBSCRIPTION_TAG = "sub:"
CHANNEL_TAG = "chan:"


@dataclass(frozen=True)
class KeyScheme:
    """Maps the three logical namespaces onto store keys.

    Every key carries its namespace tag, so no topic or subscriber id can
    address a key of another namespace. With the default empty prefix::

        pub:<topic>           publisher binding (string)
        sub:<subscriber_id>   subscription record (JSON string)
        chan:<topic>          channel (list of JSON messages)
    """

    prefix: str = ""

    def publisher(self, topic: str) -> str:
        return f"{self.prefix}{PUBLISHER_TAG}{topic}"

    def subscription(self, subscriber_id: str) -> str:
        return f"{self.prefix}{SUBSCRIPTION_TAG}{subscriber_id}"

    def channel(self, topic: str) -> str:
        return f"{self.prefix}{CHANNEL_TAG}{topic}"
