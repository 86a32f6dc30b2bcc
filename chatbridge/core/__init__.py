"""Core module initialization."""

from .backend import Backend, BackendClient, BackendStream, build_outbound_headers, format_httpx_error
from .exceptions import BackendError, BridgeError, ConfigurationError, InvalidRequestError
from .registry import get_client, set_client
from .sse import SSEDecoder, format_sse_event
from .stream import StreamAdapter

__all__ = [
    "Backend",
    "BackendClient",
    "BackendError",
    "BackendStream",
    "BridgeError",
    "ConfigurationError",
    "InvalidRequestError",
    "SSEDecoder",
    "StreamAdapter",
    "build_outbound_headers",
    "format_httpx_error",
    "format_sse_event",
    "get_client",
    "set_client",
]
