"""Request and response bodies for the HTTP API.

Field names follow the wire format (``pubId``, ``subId``, ``message``).
"""

from pydantic import BaseModel, Field


class PublishMessageRequest(BaseModel):
    pub_id: str = Field(alias="pubId")
    message: str

    model_config = {"populate_by_name": True}


class SubscriberRequest(BaseModel):
    """Body of get/ack requests."""

    sub_id: str = Field(alias="subId")

    model_config = {"populate_by_name": True}


class RegisterPublisherResponse(BaseModel):
    pub_id: str = Field(serialization_alias="pubId")


class SubscribeResponse(BaseModel):
    sub_id: str = Field(serialization_alias="subId")
    topic: str


class GetMessageResponse(BaseModel):
    message: str


class StatusResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    error_message: str = Field(serialization_alias="errorMessage")
