"""Request flow shared by the dialect endpoints."""

import logging
from typing import AsyncIterator, Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect

from ...core.backend import BackendStream
from ...core.exceptions import BackendError, InvalidRequestError
from ...core.registry import get_client
from ...core.stream import StreamAdapter
from ...dialects import Dialect, create_sequencer, decode_request, normalize_request, project_response

logger = logging.getLogger("chatbridge")

ErrorBuilder = Callable[..., JSONResponse]


async def handle_exchange(
    request: Request,
    dialect: Dialect,
    error_response: ErrorBuilder,
) -> Response:
    """Run one request through normalize -> backend -> project/sequence.

    Args:
        request: Incoming request
        dialect: Dialect spoken by the endpoint
        error_response: Builds an error body in the dialect's envelope,
            called as error_response(message, error_type=..., status_code=..., error_code=...)

    Returns:
        JSONResponse for non-streaming, StreamingResponse for streaming
    """
    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning("Client disconnected before request body was fully read")
        return Response(status_code=499)

    try:
        payload = decode_request(body)
        chat_request = normalize_request(dialect, payload)
    except InvalidRequestError as exc:
        logger.error(f"Rejected {dialect.value} request: {exc.message}")
        return error_response(
            exc.message,
            error_type="invalid_request_error",
            status_code=400,
            error_code=exc.code,
        )

    model_name = str(payload.get("model") or "")
    is_stream = bool(chat_request.get("stream"))
    logger.info(f"Processing {dialect.value} request: model={model_name}, stream={is_stream}")

    try:
        result = await get_client().submit_canonical(chat_request)
    except BackendError as exc:
        return error_response(
            exc.message,
            error_type="server_error",
            status_code=502,
            error_code="backend_error",
        )

    if not is_stream:
        return JSONResponse(project_response(dialect, result, model_name))

    adapter = create_sequencer(dialect, model_name)
    return StreamingResponse(
        translated_stream(adapter, result, request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
        # Releases the backend stream if the body iterator is cancelled
        background=BackgroundTask(result.aclose),
    )


async def translated_stream(
    adapter: StreamAdapter,
    chunks: BackendStream,
    disconnect_checker: Optional[Callable] = None,
) -> AsyncIterator[bytes]:
    """Wrap the backend stream and convert it to the dialect's events.

    A backend failure after the stream has started ends it without terminal
    events; the client sees a truncated stream.
    """
    try:
        async for event in adapter.adapt_stream(chunks, disconnect_checker):
            yield event
    except BackendError as exc:
        logger.error(f"{adapter.name}: Backend stream failed: {exc.message}")
    else:
        logger.info(f"{adapter.name}: Stream finished")
    finally:
        await chunks.aclose()
