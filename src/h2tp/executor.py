r"""Request executor: the state machine of one attempt.

One attempt connects (directly, through a forwarding proxy or through a
CONNECT tunnel), sends the request, waits for the response headers and
then either reports a redirect to follow or streams and decodes the
body.

Every completion source of an attempt (transport error, connection
closed, timeout, decode error, successful end) is gated behind a single
``Settlement`` cell, so an attempt settles exactly once and late events
are discarded.
"""

from __future__ import annotations

__all__ = ["AttemptState", "RequestExecutor", "Settlement", "build_connection_config"]

import asyncio
import enum
import logging
import time
import zlib
from typing import TYPE_CHECKING, Generic, TypeVar

import httpx

from h2tp.callbacks import invoke_on_request, invoke_on_socket
from h2tp.decoder import read_body
from h2tp.exceptions import (
    ConnectionClosedError,
    DecodeError,
    HttpConnectionError,
    HttpTimeoutError,
)
from h2tp.headers import normalize_headers
from h2tp.models import AttemptResult, ConnectionConfig, without_userinfo
from h2tp.redirects import redirect_location
from h2tp.tunnel import open_tunnel
from h2tp.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from h2tp.core.options import RequestOptions
    from h2tp.models import RequestSpec

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttemptState(enum.Enum):
    r"""States of one attempt."""

    IDLE = "idle"
    CONNECTING = "connecting"
    HEADERS_PENDING = "headers_pending"
    REDIRECTING = "redirecting"
    BODY_STREAMING = "body_streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class Settlement(Generic[T]):
    r"""Single-assignment result cell.

    The first call to ``resolve`` or ``reject`` settles the cell. Any
    later call is a no-op and returns ``False``.

    Example:
        ```pycon
        >>> import asyncio
        >>> from h2tp.executor import Settlement
        >>> async def main():
        ...     settlement = Settlement()
        ...     first = settlement.resolve("ok")
        ...     second = settlement.reject(RuntimeError("late"))
        ...     return first, second, await settlement.wait()
        ...
        >>> asyncio.run(main())
        (True, False, 'ok')

        ```
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def resolve(self, value: T) -> bool:
        if self.settled:
            return False
        self._future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        if self.settled:
            return False
        self._future.set_exception(error)
        return True

    async def wait(self) -> T:
        return await self._future


def build_connection_config(
    spec: RequestSpec, transport: httpx.AsyncBaseTransport | None = None
) -> ConnectionConfig:
    """Derive the connection parameters of one attempt.

    Args:
        spec: The request state, with normalized headers.
        transport: Optional pre-established transport (a tunnel).

    Returns:
        The connection parameters. When forwarding through a proxy
        without a tunnel, the connection targets the proxy and the path
        is the absolute target URL.

    Example:
        ```pycon
        >>> from h2tp.executor import build_connection_config
        >>> from h2tp.models import RequestSpec
        >>> spec = RequestSpec(
        ...     url="http://example.com/a?b=1", method="GET", proxy="http://proxy:3128"
        ... )
        >>> config = build_connection_config(spec)
        >>> config.host, config.port, config.path
        ('proxy', 3128, 'http://example.com/a?b=1')

        ```
    """
    url = httpx.URL(spec.url)
    if spec.uses_forward_proxy:
        proxy = httpx.URL(spec.proxy)
        return ConnectionConfig(
            protocol=proxy.scheme,
            host=proxy.host,
            port=proxy.port,
            method=spec.method,
            path=without_userinfo(spec.url),
            headers=dict(spec.headers),
            transport=transport,
        )
    return ConnectionConfig(
        protocol=url.scheme,
        host=url.host,
        port=url.port,
        method=spec.method,
        path=url.raw_path.decode("ascii"),
        headers=dict(spec.headers),
        transport=transport,
    )


class RequestExecutor:
    r"""Run one attempt of a request.

    Args:
        spec: The request state of the attempt. Its headers and payload
            are normalized in place.
        options: The request options providing the hooks and the SSL
            context.
        client: The client used when the attempt does not need a tunnel.
            The executor never closes it.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from h2tp.core.options import RequestOptions
        >>> from h2tp.executor import RequestExecutor
        >>> from h2tp.models import RequestSpec
        >>> async def main():  # doctest: +SKIP
        ...     options = RequestOptions(url="https://api.example.com/data")
        ...     async with httpx.AsyncClient() as client:
        ...         executor = RequestExecutor(RequestSpec.from_options(options), options, client)
        ...         return await executor.execute()
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self, spec: RequestSpec, options: RequestOptions, client: httpx.AsyncClient
    ) -> None:
        self._spec = spec
        self._options = options
        self._client = client
        # The attempt reports the URL and method it started with
        self._url = spec.url
        self._method = spec.method
        self.state = AttemptState.IDLE

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(method={self._method!r}, url={self._url!r}, "
            f"state={self.state.value})"
        )

    async def execute(self) -> AttemptResult:
        """Run the attempt until it settles.

        Returns:
            The attempt result. ``location`` is set when the response is
            a redirect to follow.

        Raises:
            HttpTimeoutError: If the attempt does not settle within the
                timeout. The in-flight attempt is aborted.
            ConnectionClosedError: If the connection closed before a
                response was received.
            HttpConnectionError: On transport-level failures.
            ProxyTunnelError: If the proxy refused the tunnel.
            DecodeError: If the response body cannot be decoded.
        """
        loop = asyncio.get_running_loop()
        settlement: Settlement[AttemptResult] = Settlement()
        start_time = time.time()

        timer: asyncio.TimerHandle | None = None
        task = asyncio.create_task(self._attempt())
        if self._spec.timeout:
            timer = loop.call_later(self._spec.timeout / 1000, self._on_timeout, settlement, task)
        task.add_done_callback(lambda done: self._on_attempt_done(settlement, done))

        try:
            result = await settlement.wait()
        except Exception as exc:
            self.state = AttemptState.FAILED
            self._log_settlement(start_time, error=exc)
            raise
        finally:
            if timer is not None:
                timer.cancel()
            if not task.done():
                task.cancel()
            # The transport is torn down before control returns to the caller
            await asyncio.gather(task, return_exceptions=True)

        self._log_settlement(start_time, status_code=result.response.status_code)
        return result

    def _on_timeout(self, settlement: Settlement[AttemptResult], task: asyncio.Task) -> None:
        if task.done() and not task.cancelled():
            # The done callback scheduled for the finished attempt settles it
            return
        error = HttpTimeoutError(method=self._method, url=self._url, timeout=self._spec.timeout)
        if settlement.reject(error):
            logger.debug(f"{self._method} request to {self._url} timed out, aborting")
            task.cancel()

    def _on_attempt_done(self, settlement: Settlement[AttemptResult], task: asyncio.Task) -> None:
        if task.cancelled():
            settlement.reject(self._closed_error())
            return
        error = task.exception()
        if error is not None:
            settlement.reject(error)
        else:
            settlement.resolve(task.result())

    def _closed_error(self, cause: BaseException | None = None) -> ConnectionClosedError:
        return ConnectionClosedError(
            method=self._method,
            url=self._url,
            message=f"{self._method} request to {self._url} closed before a response was received",
            cause=cause,
        )

    def _connection_error(self, exc: Exception) -> HttpConnectionError:
        error_type = type(exc).__name__
        return HttpConnectionError(
            method=self._method,
            url=self._url,
            message=f"{self._method} request to {self._url} encountered {error_type}: {exc}",
            cause=exc,
        )

    async def _attempt(self) -> AttemptResult:
        spec = self._spec
        normalize_headers(spec)

        self.state = AttemptState.CONNECTING
        transport: httpx.AsyncBaseTransport | None = None
        if spec.uses_tunnel:
            transport = await open_tunnel(
                spec.proxy, spec.url, ssl_context=self._options.ssl_context
            )
        config = build_connection_config(spec, transport=transport)
        tunnel_client: httpx.AsyncClient | None = None
        if config.transport is not None:
            tunnel_client = httpx.AsyncClient(transport=config.transport, trust_env=False)
        client = tunnel_client if tunnel_client is not None else self._client

        try:
            request = self._build_request(client, config)
            invoke_on_request(self._options.on_request, request)
            logger.debug(f"Sending {self._method} request to {self._url}")
            try:
                response = await client.send(request, stream=True, follow_redirects=False)
            except httpx.RemoteProtocolError as exc:
                raise self._closed_error(cause=exc) from exc
            except httpx.TransportError as exc:
                raise self._connection_error(exc) from exc

            self.state = AttemptState.HEADERS_PENDING
            try:
                invoke_on_socket(self._options.on_socket, response)
                location = redirect_location(response, spec.url, spec.max_redirects)
                if location is not None:
                    self.state = AttemptState.REDIRECTING
                    return AttemptResult(request=request, response=response, location=location)

                self.state = AttemptState.BODY_STREAMING
                body = await self._read_body(response)
            finally:
                await response.aclose()
            self.state = AttemptState.COMPLETED
            return AttemptResult(request=request, response=response, body=body)
        finally:
            if tunnel_client is not None:
                await tunnel_client.aclose()

    def _build_request(self, client: httpx.AsyncClient, config: ConnectionConfig) -> httpx.Request:
        spec = self._spec
        extensions = None
        if config.absolute_form:
            # Sent to the proxy with the absolute target URL as request target
            extensions = {"target": config.path.encode("ascii")}
        content = spec.payload
        if isinstance(content, (bytearray, memoryview)):
            content = bytes(content)
        request = client.build_request(
            config.method,
            config.url,
            headers=config.headers,
            content=content,
            extensions=extensions,
            # The attempt timer is the only timeout
            timeout=None,
        )
        if "accept-encoding" not in config.headers:
            # Do not let the client negotiate compression on its own
            request.headers.pop("accept-encoding", None)
        return request

    async def _read_body(self, response: httpx.Response) -> str:
        try:
            return await read_body(response, on_data=self._options.on_data)
        except zlib.error as exc:
            raise DecodeError(
                method=self._method,
                url=self._url,
                message=f"{self._method} request to {self._url} returned a malformed body: {exc}",
                status_code=response.status_code,
                response=response,
                cause=exc,
            ) from exc
        except httpx.TransportError as exc:
            raise self._connection_error(exc) from exc

    def _log_settlement(
        self,
        start_time: float,
        status_code: int | None = None,
        error: Exception | None = None,
    ) -> None:
        log_structured(
            logger,
            logging.DEBUG,
            f"{self._method} request to {self._url} settled in state {self.state.value}",
            method=self._method,
            url=self._url,
            status_code=status_code,
            error=None if error is None else type(error).__name__,
            duration_ms=round((time.time() - start_time) * 1000, 3),
        )
