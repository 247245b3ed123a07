"""FastAPI transport for the relay.

Routes:
    POST   /topic/register/{topic}    → { pubId }
    POST   /message/publish/{topic}   { pubId, message } → { status }
    POST   /topic/subscribe/{topic}   → { subId, topic }
    GET    /message/get/{topic}       { subId } → { message } | 204
    DELETE /message/ack/{topic}       { subId } → { message } | 204
    GET    /health                    → backend health and relay counters

Client errors map to a stable status code and ``{"errorMessage": ...}``.
Store errors become a 500 with a fixed message; the detail is only logged.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from topicrelay.apps.http.schemas import (
    ErrorResponse,
    GetMessageResponse,
    PublishMessageRequest,
    RegisterPublisherResponse,
    StatusResponse,
    SubscribeResponse,
    SubscriberRequest,
)
from topicrelay.config import DEFAULT_BODY_LIMIT
from topicrelay.core.errors import (
    InvalidRequest,
    RelayError,
    StoreError,
    SubscriberNotBoundToTopic,
    TopicAlreadyBound,
    TopicNotFound,
    UnauthorizedPublisher,
    UnknownSubscriber,
)
from topicrelay.core.relay import Relay

logger = logging.getLogger("topicrelay.http")

INTERNAL_ERROR_MESSAGE = "Something went wrong"
BAD_BODY_MESSAGE = "Couldn't read request body"

STATUS_BY_ERROR: dict[type[RelayError], int] = {
    InvalidRequest: 400,
    TopicAlreadyBound: 400,
    UnauthorizedPublisher: 401,
    TopicNotFound: 404,
    UnknownSubscriber: 404,
    SubscriberNotBoundToTopic: 404,
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error_message=message).model_dump(by_alias=True),
    )


class BodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose body exceeds the limit.

    A declared Content-Length is checked up front. Bodies without one
    (chunked uploads) are counted as they stream in and buffered for the
    route once they fit.
    """

    def __init__(self, app, limit: int) -> None:
        super().__init__(app)
        self.limit = limit

    def _too_large(self) -> JSONResponse:
        return _error(413, f"Request body exceeds {self.limit} bytes")

    async def dispatch(self, request: Request, call_next):
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError:
                return _error(400, "Invalid Content-Length")
            if size > self.limit:
                return self._too_large()
            return await call_next(request)

        body = bytearray()
        async for chunk in request.stream():
            body += chunk
            if len(body) > self.limit:
                return self._too_large()
        request._body = bytes(body)
        return await call_next(request)


def create_app(relay: Relay, body_limit: int = DEFAULT_BODY_LIMIT) -> FastAPI:
    """Build the HTTP app around an existing relay.

    The app's lifespan opens the backend connection when the backend has a
    ``connect`` method and closes the relay on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        connect = getattr(relay.backend, "connect", None)
        if connect is not None:
            try:
                await connect()
            except StoreError as e:
                # The backend keeps reconnecting in the background
                logger.error(f"Store unavailable at startup: {e}", extra={"error": str(e)})
        logger.info("Started")
        yield
        await relay.close()
        logger.info("Stopped")

    app = FastAPI(title="topicrelay", lifespan=lifespan)
    app.state.relay = relay
    app.add_middleware(BodyLimitMiddleware, limit=body_limit)

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        if isinstance(exc, StoreError):
            return _error(500, INTERNAL_ERROR_MESSAGE)
        for error_type, status_code in STATUS_BY_ERROR.items():
            if isinstance(exc, error_type):
                return _error(status_code, str(exc))
        logger.error(f"Unmapped relay error: {exc!r}")
        return _error(500, INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"{BAD_BODY_MESSAGE}: {exc.errors()}", extra={"path": request.url.path})
        return _error(400, BAD_BODY_MESSAGE)

    @app.post("/topic/register/{topic}")
    async def register_publisher(topic: str) -> JSONResponse:
        pub_id = await relay.register_publisher(topic)
        return JSONResponse(RegisterPublisherResponse(pub_id=pub_id).model_dump(by_alias=True))

    @app.post("/message/publish/{topic}")
    async def publish_message(topic: str, body: PublishMessageRequest) -> JSONResponse:
        await relay.publish(topic, body.pub_id, body.message)
        return JSONResponse(StatusResponse(status="Message sent").model_dump())

    @app.post("/topic/subscribe/{topic}")
    async def subscribe(topic: str) -> JSONResponse:
        sub_id = await relay.subscribe(topic)
        return JSONResponse(
            SubscribeResponse(sub_id=sub_id, topic=topic).model_dump(by_alias=True)
        )

    @app.get("/message/get/{topic}")
    async def get_message(topic: str, body: SubscriberRequest) -> Response:
        payload = await relay.get_message(body.sub_id, topic)
        if payload is None:
            return Response(status_code=204)
        return JSONResponse(GetMessageResponse(message=payload).model_dump())

    @app.delete("/message/ack/{topic}")
    async def ack_message(topic: str, body: SubscriberRequest) -> Response:
        payload = await relay.ack_message(body.sub_id, topic)
        if payload is None:
            return Response(status_code=204)
        return JSONResponse(GetMessageResponse(message=payload).model_dump())

    @app.get("/health")
    async def health() -> JSONResponse:
        stats = relay.get_stats().to_dict()
        check = getattr(relay.backend, "health", None)
        if check is None:
            return JSONResponse({"healthy": True, "stats": stats})
        result = await check()
        return JSONResponse(
            status_code=200 if result.healthy else 503,
            content={
                "healthy": result.healthy,
                "latency_ms": result.latency_ms,
                "details": result.details,
                "stats": stats,
            },
        )

    return app
