"""Messages endpoint handler.

Implements POST /v1/messages by translating to and from Chat Completions.
Streaming requests get `message_*` / `content_block_*` events.
"""

import logging
from typing import Any, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from ...dialects import Dialect
from .common import handle_exchange

logger = logging.getLogger("chatbridge")


def build_error_response(
    message: str,
    *,
    error_type: str = "invalid_request_error",
    status_code: int = 400,
    error_code: Optional[str] = None,
    param: Optional[str] = None,
) -> JSONResponse:
    """Build an error in the {"type": "error", "error": {...}} envelope."""
    error: dict[str, Any] = {"type": error_type, "message": message}
    if error_code:
        error["code"] = error_code
    if param:
        error["param"] = param
    payload = {"type": "error", "error": error}
    return JSONResponse(payload, status_code=status_code)


async def messages_endpoint(request: Request) -> Response:
    """POST /v1/messages"""
    logger.info("Received Messages request")
    return await handle_exchange(request, Dialect.MESSAGES, build_error_response)
