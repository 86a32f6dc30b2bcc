"""Main FastAPI application for the chat bridge."""

import logging
from typing import Any, Mapping, Optional

import httpx
from fastapi import FastAPI

from .api.routes import messages_endpoint, responses_endpoint
from .config_loader import load_config, parse_backend, resolve_log_level
from .core import BackendClient
from .core.registry import set_client
from .logging import setup_logging

logger = logging.getLogger("chatbridge")


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        config: Parsed configuration; loaded from disk when omitted
        transport: Optional httpx transport for the backend client,
            used to run against an in-process backend

    Returns:
        The configured FastAPI application instance.
    """
    if config is None:
        config = load_config()

    setup_logging(resolve_log_level(config))

    backend = parse_backend(config)
    client = BackendClient(backend, transport=transport)
    set_client(client)
    logger.info(f"Backend {backend.name} at {backend.base_url}")

    app = FastAPI(title="chatbridge")

    # Register routes
    app.post("/v1/responses")(responses_endpoint)
    app.post("/v1/messages")(messages_endpoint)
    logger.info("FastAPI application created")

    return app


__all__ = ["create_app"]
