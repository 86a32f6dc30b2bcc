"""Backend configuration and the canonical chat completions client."""

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional, Union

import httpx

from ..types.chat import ChatCompletionRequest, ChatCompletionResponse
from .exceptions import BackendError
from .sse import DONE_SENTINEL, SSEDecoder

logger = logging.getLogger("chatbridge")

DEFAULT_TIMEOUT = 60
CHAT_COMPLETIONS_PATH = "/chat/completions"


@dataclass
class Backend:
    """Represents the chat completions backend."""

    name: str
    base_url: str
    api_key: str
    timeout: Optional[float]
    target_model: Optional[str]

    def build_url(self, path: str) -> str:
        """Build the full URL for a backend request."""
        base = self.base_url.rstrip("/")
        normalized_path = path or ""
        if not normalized_path.startswith("/"):
            normalized_path = f"/{normalized_path}"
        return f"{base}{normalized_path}"


def format_httpx_error(exc: httpx.HTTPError, backend: Backend, url: Optional[str] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    if url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException):
        timeout = backend.timeout or DEFAULT_TIMEOUT
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)


def build_outbound_headers(backend_api_key: str) -> dict[str, str]:
    """Build headers for outbound requests to the backend."""
    headers = {"Content-Type": "application/json"}
    if backend_api_key:
        headers["Authorization"] = f"Bearer {backend_api_key}"
    return headers


class BackendClient:
    """Submits canonical requests to the chat completions backend.

    A non-streaming request returns the decoded completion. A streaming
    request returns a BackendStream over the `data:` payloads of the
    backend's SSE stream, ending before the [DONE] sentinel.
    """

    def __init__(
        self,
        backend: Backend,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.backend = backend
        self.transport = transport

    async def submit_canonical(
        self, request: ChatCompletionRequest
    ) -> Union[ChatCompletionResponse, "BackendStream"]:
        """Send a canonical request to the backend.

        Raises:
            BackendError: On transport failure or a backend error status
        """
        payload: dict[str, Any] = dict(request)
        if self.backend.target_model:
            payload["model"] = self.backend.target_model
            logger.debug(f"Rewrote model for backend {self.backend.name} to {self.backend.target_model}")

        url = self.backend.build_url(CHAT_COMPLETIONS_PATH)
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = build_outbound_headers(self.backend.api_key)

        if payload.get("stream"):
            return await self._streaming_request(url, headers, body)
        return await self._request(url, headers, body)

    async def _request(
        self, url: str, headers: dict[str, str], body: bytes
    ) -> ChatCompletionResponse:
        timeout = self.backend.timeout or DEFAULT_TIMEOUT
        logger.debug(f"Initiating non-streaming request to {url}")
        try:
            async with httpx.AsyncClient(
                timeout=timeout, transport=self.transport, follow_redirects=True
            ) as client:
                resp = await client.post(url, headers=headers, content=body)
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, self.backend, url)
            logger.error(f"Request to {self.backend.name} failed: {detail}")
            raise BackendError(detail) from exc

        logger.debug(f"Received response from {url}: status {resp.status_code}")

        if resp.status_code >= 400:
            logger.error(f"{self.backend.name} returned error status {resp.status_code}")
            raise BackendError(
                f"{self.backend.name} returned status {resp.status_code}",
                status_code=resp.status_code,
                body=resp.content,
            )

        try:
            completion = resp.json()
        except ValueError as exc:
            raise BackendError(
                f"{self.backend.name} returned invalid JSON",
                status_code=resp.status_code,
                body=resp.content,
            ) from exc

        if not isinstance(completion, dict):
            raise BackendError(
                f"{self.backend.name} returned a non-object body",
                status_code=resp.status_code,
                body=resp.content,
            )
        return completion

    async def _streaming_request(
        self, url: str, headers: dict[str, str], body: bytes
    ) -> "BackendStream":
        timeout = self.backend.timeout or DEFAULT_TIMEOUT
        stream_timeout = httpx.Timeout(connect=timeout, read=None, write=timeout, pool=timeout)
        client = httpx.AsyncClient(
            timeout=stream_timeout, transport=self.transport, follow_redirects=True
        )
        try:
            request = client.build_request("POST", url, headers=headers, content=body)
            logger.debug(f"Sending streaming request to {url}")
            resp = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            detail = format_httpx_error(exc, self.backend, url)
            logger.error(f"Failed to send streaming request to {url}: {detail}")
            raise BackendError(detail) from exc

        if resp.status_code >= 400:
            data = await resp.aread()
            await resp.aclose()
            await client.aclose()
            logger.error(f"Streaming request to {url} returned error status {resp.status_code}")
            raise BackendError(
                f"{self.backend.name} returned status {resp.status_code}",
                status_code=resp.status_code,
                body=data,
            )

        logger.info(f"Streaming request to {url} successful, status {resp.status_code}")
        return BackendStream(self.backend, url, resp, client)


class BackendStream:
    """Async iterator over the `data:` payloads of a streaming backend response.

    Owns the response and its client until aclose(), which is safe to call
    more than once and also before the stream has been iterated.
    """

    def __init__(
        self,
        backend: Backend,
        url: str,
        response: httpx.Response,
        client: httpx.AsyncClient,
    ):
        self.backend = backend
        self.url = url
        self.response = response
        self.client = client
        self.closed = False
        self._payloads = self._iter_data()

    def __aiter__(self) -> "BackendStream":
        return self

    async def __anext__(self) -> str:
        return await self._payloads.__anext__()

    async def _iter_data(self) -> AsyncIterator[str]:
        decoder = SSEDecoder()
        try:
            async for chunk in self.response.aiter_bytes():
                for event in decoder.feed(chunk):
                    if event.data is None:
                        continue
                    if event.data.strip() == DONE_SENTINEL:
                        return
                    yield event.data
            for event in decoder.flush():
                if event.data is not None and event.data.strip() != DONE_SENTINEL:
                    yield event.data
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, self.backend, self.url)
            logger.error(f"Stream from {self.backend.name} broke off: {detail}")
            raise BackendError(detail) from exc
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the backend connection."""
        if self.closed:
            return
        self.closed = True
        logger.debug(f"Closing stream for {self.url}")
        await self.response.aclose()
        await self.client.aclose()
