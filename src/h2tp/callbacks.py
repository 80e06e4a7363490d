r"""Callback types and data structures for observability.

This module provides the lifecycle hooks of the request engine. Every
hook is optional and is invoked at a fixed point of an attempt:

- on_request: Called with the ``httpx.Request`` once it is built and
  before it is sent
- on_socket: Called with the network stream once the connection is
  available (if the transport exposes it)
- on_data: Called with every decoded body chunk. When provided, the
  body is not buffered
- on_redirect: Called before a redirect is followed

Example:
    ```pycon
    >>> import asyncio
    >>> from h2tp import get_async
    >>> from h2tp.callbacks import RedirectInfo
    >>> def log_redirect(info: RedirectInfo):
    ...     print(f"{info.status_code} -> {info.location}")
    ...
    >>> outcome = asyncio.run(
    ...     get_async("https://api.example.com/data", on_redirect=log_redirect)
    ... )  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "RedirectInfo",
    "invoke_on_data",
    "invoke_on_redirect",
    "invoke_on_request",
    "invoke_on_socket",
]

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx


@dataclass
class RedirectInfo:
    """Information passed to on_redirect callback.

    Attributes:
        url: The URL that answered with a redirect.
        location: The absolute URL that will be requested next.
        method: The HTTP method (e.g., "GET", "POST").
        status_code: The 3xx status code of the redirect response.
        remaining: The redirect budget left after following this hop.
    """

    url: str
    location: str
    method: str
    status_code: int
    remaining: int


def invoke_on_request(
    on_request: Callable[[httpx.Request], None] | None, request: httpx.Request
) -> None:
    """Invoke on_request callback if provided.

    Args:
        on_request: Optional callback observing the outgoing request.
        request: The request about to be sent.
    """
    if on_request is not None:
        on_request(request)


def invoke_on_socket(on_socket: Callable[[Any], None] | None, response: httpx.Response) -> None:
    """Invoke on_socket callback if provided and the transport exposes
    its network stream.

    Args:
        on_socket: Optional callback observing the network stream.
        response: The response whose ``network_stream`` extension is
            passed to the callback.
    """
    if on_socket is None:
        return
    network_stream = response.extensions.get("network_stream")
    if network_stream is not None:
        on_socket(network_stream)


def invoke_on_data(on_data: Callable[[bytes], None] | None, chunk: bytes) -> None:
    """Invoke on_data callback if provided and the chunk is not empty.

    Args:
        on_data: Optional sink receiving decoded body chunks.
        chunk: A decoded body chunk.
    """
    if on_data is not None and chunk:
        on_data(chunk)


def invoke_on_redirect(
    on_redirect: Callable[[RedirectInfo], None] | None,
    *,
    url: str,
    location: str,
    method: str,
    status_code: int,
    remaining: int,
) -> None:
    """Invoke on_redirect callback if provided.

    Args:
        on_redirect: Optional callback to invoke before a redirect is
            followed.
        url: The URL that answered with a redirect.
        location: The absolute URL that will be requested next.
        method: The HTTP method (e.g., "GET", "POST").
        status_code: The 3xx status code of the redirect response.
        remaining: The redirect budget left after following this hop.
    """
    if on_redirect is not None:
        redirect_info = RedirectInfo(
            url=url,
            location=location,
            method=method,
            status_code=status_code,
            remaining=remaining,
        )
        on_redirect(redirect_info)
