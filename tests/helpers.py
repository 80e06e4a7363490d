r"""Shared test helpers for the request engine tests.

This module contains the fake transports and the local HTTP server used
across the unit and integration tests.
"""

from __future__ import annotations

__all__ = [
    "TEST_URL",
    "LocalServer",
    "ReceivedRequest",
    "RecordingHandler",
    "create_mock_client",
    "create_stream_response",
    "format_response",
    "serve",
]

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping, Sequence

TEST_URL = "http://example.com/data"


def create_stream_response(
    status_code: int = 200,
    *,
    headers: Mapping[str, str] | None = None,
    body: bytes = b"",
) -> httpx.Response:
    """Create a response whose body is still unread.

    ``httpx.Response(content=...)`` loads its body eagerly, which leaves
    nothing for ``aiter_raw`` to stream.
    """
    return httpx.Response(status_code, headers=headers, stream=httpx.ByteStream(body))


class RecordingHandler:
    """``httpx.MockTransport`` handler replaying responses in order.

    Args:
        responses: The responses to return, one per request. The last
            response is repeated once the sequence is exhausted.
    """

    def __init__(self, responses: Sequence[httpx.Response | Exception]) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self._responses)) - 1
        response = self._responses[index]
        if isinstance(response, Exception):
            raise response
        return response


def create_mock_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` answering through ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def format_response(
    status_code: int, headers: Mapping[str, str] | None = None, body: bytes = b""
) -> bytes:
    """Serialize an HTTP/1.1 response closing the connection."""
    lines = [f"HTTP/1.1 {status_code} Status"]
    all_headers = {"content-length": str(len(body)), "connection": "close"}
    all_headers.update(headers or {})
    lines.extend(f"{name}: {value}" for name, value in all_headers.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + body


@dataclass
class ReceivedRequest:
    """Request received by a ``LocalServer``."""

    method: str
    target: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class LocalServer:
    """Minimal HTTP/1.1 server answering one request per connection.

    Args:
        handler: Called with every received request. It returns the raw
            response bytes to send, or ``None`` to never answer.
    """

    def __init__(self, handler: Callable[[ReceivedRequest], bytes | None]) -> None:
        self._handler = handler
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []
        self.requests: list[ReceivedRequest] = []
        self._port: int | None = None

    @property
    def port(self) -> int:
        return self._port

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    async def start(self) -> LocalServer:
        self._server = await asyncio.start_server(self._serve, "127.0.0.1", 0)
        self._port = self._server.sockets[0].getsockname()[1]
        return self

    async def close(self) -> None:
        for writer in self._writers:
            writer.close()
        self._server.close()
        await self._server.wait_closed()

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.append(writer)
        try:
            head = await reader.readuntil(b"\r\n\r\n")
        except (asyncio.IncompleteReadError, ConnectionError):
            writer.close()
            return
        request_line, *header_lines = head.decode("latin-1").split("\r\n")
        method, target, _ = request_line.split(" ", 2)
        headers = {}
        for line in header_lines:
            if line:
                name, value = line.split(":", 1)
                headers[name.strip().lower()] = value.strip()
        body = await reader.readexactly(int(headers.get("content-length", "0")))
        request = ReceivedRequest(method=method, target=target, headers=headers, body=body)
        self.requests.append(request)

        reply = self._handler(request)
        if reply is None:
            # Hold the connection open until the client goes away
            with contextlib.suppress(ConnectionError):
                await reader.read()
        else:
            writer.write(reply)
            with contextlib.suppress(ConnectionError):
                await writer.drain()
        writer.close()


@contextlib.asynccontextmanager
async def serve(handler: Callable[[ReceivedRequest], bytes | None]) -> AsyncIterator[LocalServer]:
    """Run a ``LocalServer`` for the duration of the context."""
    server = await LocalServer(handler).start()
    try:
        yield server
    finally:
        await server.close()
