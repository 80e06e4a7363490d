r"""Proxy CONNECT tunnel negotiation.

This module opens a connection to a proxy, asks it for a raw tunnel to
the target with an HTTP ``CONNECT host:port`` request, starts TLS over
the tunnel and exposes the result as an ``httpx`` transport usable in
place of a direct connection.

The sockets, TLS and HTTP/1.1 framing are provided by ``httpcore``.
"""

from __future__ import annotations

__all__ = ["TunnelTransport", "connect_authority", "open_tunnel"]

import contextlib
import logging
from typing import TYPE_CHECKING

import httpcore
import httpx

from h2tp.exceptions import HttpConnectionError, ProxyTunnelError
from h2tp.headers import basic_auth

if TYPE_CHECKING:
    import ssl
    from collections.abc import AsyncIterator, Iterator

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}

# httpcore exceptions raised by tunneled requests and their httpx counterpart
HTTPCORE_EXCEPTIONS: dict[type[Exception], type[httpx.TransportError]] = {
    httpcore.ConnectTimeout: httpx.ConnectTimeout,
    httpcore.ReadTimeout: httpx.ReadTimeout,
    httpcore.WriteTimeout: httpx.WriteTimeout,
    httpcore.PoolTimeout: httpx.PoolTimeout,
    httpcore.ConnectError: httpx.ConnectError,
    httpcore.ReadError: httpx.ReadError,
    httpcore.WriteError: httpx.WriteError,
    httpcore.RemoteProtocolError: httpx.RemoteProtocolError,
    httpcore.LocalProtocolError: httpx.LocalProtocolError,
    httpcore.UnsupportedProtocol: httpx.UnsupportedProtocol,
    httpcore.ProxyError: httpx.ProxyError,
}

TUNNEL_ERRORS = (httpcore.NetworkError, httpcore.ProtocolError, httpcore.TimeoutException, OSError)


def connect_authority(url: httpx.URL) -> str:
    """Return the ``host:port`` authority of a CONNECT request.

    Args:
        url: The target URL.

    Returns:
        The authority, with the scheme default port when the URL has no
        explicit port.

    Example:
        ```pycon
        >>> import httpx
        >>> from h2tp.tunnel import connect_authority
        >>> connect_authority(httpx.URL("https://example.com/path"))
        'example.com:443'
        >>> connect_authority(httpx.URL("https://[::1]:8443/"))
        '[::1]:8443'

        ```
    """
    host = url.raw_host.decode("ascii")
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{url.port or DEFAULT_PORTS[url.scheme]}"


@contextlib.contextmanager
def map_httpcore_exceptions(request: httpx.Request) -> Iterator[None]:
    r"""Re-raise ``httpcore`` exceptions as their ``httpx``
    counterpart."""
    try:
        yield
    except tuple(HTTPCORE_EXCEPTIONS) as exc:
        mapped = next(
            target for source, target in HTTPCORE_EXCEPTIONS.items() if isinstance(exc, source)
        )
        raise mapped(str(exc), request=request) from exc


class TunnelResponseStream(httpx.AsyncByteStream):
    r"""Response body stream read from a tunneled connection."""

    def __init__(self, stream: AsyncIterator[bytes], request: httpx.Request) -> None:
        self._stream = stream
        self._request = request

    async def __aiter__(self) -> AsyncIterator[bytes]:
        with map_httpcore_exceptions(self._request):
            async for part in self._stream:
                yield part

    async def aclose(self) -> None:
        if hasattr(self._stream, "aclose"):
            await self._stream.aclose()


class TunnelTransport(httpx.AsyncBaseTransport):
    r"""HTTP transport sending requests over an established tunnel.

    The transport owns the tunneled connection and closes it when the
    transport is closed.

    Args:
        connection: The HTTP/1.1 connection running over the tunnel.
        authority: The ``host:port`` the tunnel leads to.
    """

    def __init__(self, connection: httpcore.AsyncHTTP11Connection, authority: str) -> None:
        self._connection = connection
        self.authority = authority

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(authority={self.authority!r})"

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        core_request = httpcore.Request(
            method=request.method,
            url=httpcore.URL(
                scheme=request.url.raw_scheme,
                host=request.url.raw_host,
                port=request.url.port,
                target=request.url.raw_path,
            ),
            headers=request.headers.raw,
            content=request.stream,
            extensions=request.extensions,
        )
        with map_httpcore_exceptions(request):
            core_response = await self._connection.handle_async_request(core_request)

        return httpx.Response(
            status_code=core_response.status,
            headers=core_response.headers,
            stream=TunnelResponseStream(core_response.stream, request),
            extensions=core_response.extensions,
        )

    async def aclose(self) -> None:
        await self._connection.aclose()


def _tunnel_ssl_context() -> ssl.SSLContext:
    ssl_context = httpx.create_ssl_context()
    ssl_context.set_alpn_protocols(["http/1.1"])
    return ssl_context


async def open_tunnel(
    proxy: str,
    target: str,
    *,
    ssl_context: ssl.SSLContext | None = None,
    network_backend: httpcore.AsyncNetworkBackend | None = None,
) -> TunnelTransport:
    """Negotiate a CONNECT tunnel through a proxy.

    The proxy receives ``CONNECT host:port`` with a ``Proxy-Authorization``
    header when the proxy URL carries userinfo. On status 200 the
    connection becomes a raw tunnel and TLS is started over it to the
    target.

    Args:
        proxy: The proxy URL. ``https://`` proxies are reached over TLS.
        target: The HTTPS target URL.
        ssl_context: Optional SSL context for the TLS sessions.
        network_backend: Optional ``httpcore`` network backend. The
            anyio backend is used by default.

    Returns:
        A transport sending requests through the tunnel.

    Raises:
        ProxyTunnelError: If the proxy answers with a non-200 status.
        HttpConnectionError: If the proxy cannot be reached or the
            negotiation fails at the transport level.
    """
    proxy_url = httpx.URL(proxy)
    target_url = httpx.URL(target)
    authority = connect_authority(target_url)
    proxy_port = proxy_url.port or DEFAULT_PORTS[proxy_url.scheme]
    if ssl_context is None:
        ssl_context = _tunnel_ssl_context()
    if network_backend is None:
        network_backend = httpcore.AnyIOBackend()

    headers = [(b"Host", authority.encode("ascii")), (b"Accept", b"*/*")]
    if proxy_url.userinfo:
        proxy_authorization = basic_auth(proxy_url.username, proxy_url.password)
        headers.append((b"Proxy-Authorization", proxy_authorization.encode("ascii")))

    logger.debug(f"Opening CONNECT tunnel to {authority} through {proxy_url.host}:{proxy_port}")
    stream: httpcore.AsyncNetworkStream | None = None
    try:
        stream = await network_backend.connect_tcp(proxy_url.host, proxy_port)
        if proxy_url.scheme == "https":
            stream = await stream.start_tls(ssl_context, server_hostname=proxy_url.host)

        proxy_connection = httpcore.AsyncHTTP11Connection(
            origin=httpcore.Origin(proxy_url.raw_scheme, proxy_url.raw_host, proxy_port),
            stream=stream,
        )
        connect_response = await proxy_connection.handle_async_request(
            httpcore.Request(
                method=b"CONNECT",
                url=httpcore.URL(
                    scheme=proxy_url.raw_scheme,
                    host=proxy_url.raw_host,
                    port=proxy_port,
                    target=authority.encode("ascii"),
                ),
                headers=headers,
            )
        )
        if connect_response.status != 200:
            logger.debug(
                f"Proxy {proxy_url.host}:{proxy_port} refused CONNECT {authority} "
                f"with status {connect_response.status}"
            )
            await proxy_connection.aclose()
            stream = None
            raise ProxyTunnelError(
                method="CONNECT",
                url=authority,
                message=(
                    f"CONNECT request to proxy {proxy_url.host}:{proxy_port} for {authority} "
                    f"failed with status {connect_response.status}"
                ),
                status_code=connect_response.status,
            )

        tunnel_stream = connect_response.extensions["network_stream"]
        tls_stream = await tunnel_stream.start_tls(ssl_context, server_hostname=target_url.host)
        stream = tls_stream
    except TUNNEL_ERRORS as exc:
        if stream is not None:
            await stream.aclose()
        raise HttpConnectionError(
            method="CONNECT",
            url=authority,
            message=(
                f"CONNECT tunnel to {authority} through {proxy_url.host}:{proxy_port} "
                f"failed: {exc}"
            ),
            cause=exc,
        ) from exc
    except BaseException:
        if stream is not None:
            await stream.aclose()
        raise

    logger.debug(f"CONNECT tunnel to {authority} established")
    connection = httpcore.AsyncHTTP11Connection(
        origin=httpcore.Origin(b"https", target_url.raw_host, target_url.port or 443),
        stream=tls_stream,
    )
    return TunnelTransport(connection, authority)
