"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
from typing import Any, Callable, Generator

import httpx
import pytest

from chatbridge.core.backend import Backend, BackendClient
from chatbridge.core.registry import set_client


BACKEND_URL = "http://backend.local/v1"


def parse_sse_frames(raw: bytes) -> list[dict[str, Any]]:
    """Split an SSE body into {"event", "data"} dicts."""
    events = []
    for frame in raw.decode("utf-8").split("\n\n"):
        if not frame.strip():
            continue
        lines = frame.split("\n")
        event_line = next(line for line in lines if line.startswith("event: "))
        data_line = next(line for line in lines if line.startswith("data: "))
        events.append({
            "event": event_line[len("event: "):],
            "data": json.loads(data_line[len("data: "):]),
        })
    return events


def sse_body(chunks: list[Any], done: bool = True) -> bytes:
    """Encode canonical chunks as a backend SSE stream."""
    frames = [f"data: {json.dumps(chunk)}\n\n" for chunk in chunks]
    if done:
        frames.append("data: [DONE]\n\n")
    return "".join(frames).encode("utf-8")


async def aiter_list(items: list[Any]):
    for item in items:
        yield item


@pytest.fixture
def backend() -> Backend:
    return Backend(
        name="test-backend",
        base_url=BACKEND_URL,
        api_key="test-key",
        timeout=5.0,
        target_model=None,
    )


@pytest.fixture
def make_client(backend: Backend) -> Callable[[Callable[[httpx.Request], httpx.Response]], BackendClient]:
    """Build a BackendClient whose transport is the given handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> BackendClient:
        return BackendClient(backend, transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def test_config() -> dict[str, Any]:
    return {
        "backend": {
            "name": "test-backend",
            "api_base": BACKEND_URL,
            "api_key": "test-key",
            "timeout": 5,
        },
        "logging": {"level": "DEBUG"},
    }


@pytest.fixture(autouse=True)
def reset_client_registry() -> Generator[None, None, None]:
    """Clear the global backend client after each test."""
    yield
    set_client(None)
