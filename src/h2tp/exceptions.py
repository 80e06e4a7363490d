r"""Define the exceptions raised by the request engine.

Every failure of a top-level call surfaces as a subclass of
``HttpRequestError``. The original transport or codec exception, if
any, is chained as the cause.
"""

from __future__ import annotations

__all__ = [
    "ConnectionClosedError",
    "DecodeError",
    "HttpConnectionError",
    "HttpRequestError",
    "HttpTimeoutError",
    "ProxyTunnelError",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class HttpRequestError(RuntimeError):
    r"""Base exception for a failed HTTP request.

    Args:
        method: The HTTP method of the failed request.
        url: The URL of the failed request.
        message: A human readable description of the failure.
        status_code: The HTTP status code, if a response was received.
        response: The response object, if a response was received.
        cause: The exception that triggered this error, if any.

    Example:
        ```pycon
        >>> from h2tp import HttpRequestError
        >>> error = HttpRequestError(
        ...     method="GET",
        ...     url="https://api.example.com/data",
        ...     message="GET request to https://api.example.com/data failed",
        ... )
        >>> error.method
        'GET'

        ```
    """

    def __init__(
        self,
        method: str,
        url: str,
        message: str,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.message = message
        self.status_code = status_code
        self.response = response
        self.cause = cause

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(method={self.method!r}, url={self.url!r}, "
            f"status_code={self.status_code!r})"
        )


class HttpConnectionError(HttpRequestError):
    r"""Raised on transport-level failures (DNS, socket, TLS)."""


class ConnectionClosedError(HttpConnectionError):
    r"""Raised when the connection closes before any response arrives."""


class ProxyTunnelError(HttpConnectionError):
    r"""Raised when a proxy answers a CONNECT request with a non-200
    status.

    The proxy status code is available as ``status_code``.
    """


class HttpTimeoutError(HttpRequestError):
    r"""Raised when an attempt does not settle within the configured
    timeout.

    Args:
        method: The HTTP method of the request.
        url: The URL of the request.
        timeout: The configured timeout in milliseconds.
        message: An optional custom message. A message embedding the
            timeout, the method and the URL is built if omitted.
    """

    def __init__(self, method: str, url: str, timeout: float, message: str | None = None) -> None:
        if message is None:
            message = f"{method} request to {url} timed out after {timeout} ms"
        super().__init__(method=method, url=url, message=message)
        self.timeout = timeout


class DecodeError(HttpRequestError):
    r"""Raised when a compressed response body cannot be decoded."""
