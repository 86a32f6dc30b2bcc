"""chatbridge - translate between chat completion wire dialects.

Clients speaking the Responses or the Messages dialect are served by a
backend that only speaks Chat Completions. Requests are normalized to the
canonical chat completions form; complete responses are projected back, and
streamed chunks are re-sequenced into the dialect's event stream.

Example:
    >>> from chatbridge.main import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="127.0.0.1", port=8000)
"""

from .core import Backend, BackendClient, BackendError, ConfigurationError, InvalidRequestError
from .config_loader import load_config, parse_backend
from .dialects import Dialect, create_sequencer, normalize_request, project_response
from .logging import setup_logging

__all__ = [
    "Backend",
    "BackendClient",
    "BackendError",
    "ConfigurationError",
    "Dialect",
    "InvalidRequestError",
    "create_sequencer",
    "load_config",
    "normalize_request",
    "parse_backend",
    "project_response",
    "setup_logging",
]
