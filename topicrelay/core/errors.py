"""Error taxonomy for topicrelay.

Client errors are expected outcomes of a request (unknown topic, wrong
publisher id, ...) and carry a stable ``kind``. ``StoreError`` is the single
infrastructure error: the backend could not complete a call.
"""


class RelayError(Exception):
    """Base class for every error raised by the relay."""

    kind: str = "relay_error"


class ClientError(RelayError):
    """An expected, caller-caused failure. Never retried."""

    kind = "client_error"


class InvalidRequest(ClientError):
    """Malformed input, e.g. a blank topic name."""

    kind = "invalid_request"


class TopicAlreadyBound(ClientError):
    """The topic already has a registered publisher."""

    kind = "topic_already_bound"

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"Topic {topic} already has a registered publisher!")


class TopicNotFound(ClientError):
    """The topic has no publisher binding."""

    kind = "topic_not_found"

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"Topic {topic} was not found")


class UnauthorizedPublisher(ClientError):
    """The claimed publisher id does not match the topic's binding."""

    kind = "unauthorized_publisher"

    def __init__(self, topic: str, publisher_id: str):
        self.topic = topic
        self.publisher_id = publisher_id
        super().__init__(
            f"Publisher {publisher_id} is not registered to topic {topic} "
            "and cannot publish messages to it"
        )


class UnknownSubscriber(ClientError):
    kind = "unknown_subscriber"

    def __init__(self, subscriber_id: str):
        self.subscriber_id = subscriber_id
        super().__init__(f"Unknown subscriber id {subscriber_id}")


class SubscriberNotBoundToTopic(ClientError):
    kind = "subscriber_not_bound_to_topic"

    def __init__(self, subscriber_id: str, topic: str):
        self.subscriber_id = subscriber_id
        self.topic = topic
        super().__init__(f"The subscriber {subscriber_id} is not subscribed to topic {topic}")


class StoreError(RelayError):
    """Raised when a backend call fails.

    Attributes:
        original: The underlying exception, kept for logging only.
    """

    kind = "store_error"

    def __init__(self, message: str, original: Exception | None = None):
        self.original = original
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.original is not None:
            return f"{base} (cause: {self.original})"
        return base
