"""Records persisted in the store.

Both models are frozen pydantic models. They are stored as JSON using the
short field aliases (``message``/``ts`` and ``subId``/``topic``/``ts``).
"""

from pydantic import BaseModel, Field, field_validator


class Message(BaseModel):
    """A published message as it sits in a topic's channel.

    Attributes:
        payload: Opaque message body supplied by the publisher.
        published_at: Server time of the publish, in epoch milliseconds.
    """

    payload: str = Field(alias="message")
    published_at: int = Field(alias="ts", ge=0)

    model_config = {
        "extra": "ignore",
        "frozen": True,
        "populate_by_name": True,
    }

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Message":
        return cls.model_validate_json(raw)


class Subscription(BaseModel):
    """A subscriber's binding to one topic.

    ``subscribed_at`` is the visibility watermark: messages published before
    it are never delivered to this subscriber.
    """

    subscriber_id: str = Field(alias="subId")
    topic: str
    subscribed_at: int = Field(alias="ts", ge=0)

    model_config = {
        "extra": "ignore",
        "frozen": True,
        "populate_by_name": True,
    }

    @field_validator("subscriber_id", "topic")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    def can_see(self, message: Message) -> bool:
        """Return True unless the message predates this subscription."""
        return not self.subscribed_at > message.published_at

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Subscription":
        return cls.model_validate_json(raw)
