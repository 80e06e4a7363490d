r"""Asynchronous context manager client sharing a connection pool.

The ``AsyncRequestClient`` owns one ``httpx.AsyncClient`` for the
lifetime of its context, so consecutive requests reuse connections, and
applies a set of default request options to every call.
"""

from __future__ import annotations

__all__ = ["AsyncRequestClient"]

from dataclasses import fields
from typing import TYPE_CHECKING, Any

import httpx

from h2tp.core.options import RequestOptions
from h2tp.request_async import request_async

if TYPE_CHECKING:
    import ssl
    from types import TracebackType
    from typing import Self

    from h2tp.models import RequestOutcome

# Options bound per call, never as client defaults
_PER_CALL_OPTIONS = frozenset({"url", "method", "client", "ssl_context"})


class AsyncRequestClient:
    r"""Asynchronous context manager for sending several requests.

    Args:
        ssl_context: Optional SSL context of the underlying client. It
            is also used for TLS over proxy tunnels.
        **defaults: Default request options (e.g. ``headers``,
            ``timeout``, ``proxy``, ``max_redirects`` or hooks) applied
            to every request. Per-request values take precedence.

    Raises:
        TypeError: If a default does not name a request option or
            names a per-request option.

    Example:
        ```pycon
        >>> import asyncio
        >>> from h2tp import AsyncRequestClient
        >>> async def main():  # doctest: +SKIP
        ...     async with AsyncRequestClient(timeout=5000, max_redirects=3) as client:
        ...         first = await client.get("https://api.example.com/data1")
        ...         second = await client.post(
        ...             "https://api.example.com/data2", payload={"key": "value"}
        ...         )
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(self, *, ssl_context: ssl.SSLContext | None = None, **defaults: Any) -> None:
        names = {option.name for option in fields(RequestOptions)} - _PER_CALL_OPTIONS
        unknown = sorted(set(defaults) - names)
        if unknown:
            msg = f"Invalid client defaults: {', '.join(unknown)}"
            raise TypeError(msg)
        # Validate the defaults once, with a placeholder URL
        RequestOptions(url="http://localhost", **defaults)

        self._ssl_context = ssl_context
        self._defaults = defaults
        self._client: httpx.AsyncClient | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(defaults={self._defaults!r})"

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            trust_env=False, verify=True if self._ssl_context is None else self._ssl_context
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = (
                "AsyncRequestClient must be used within an async context manager "
                "(async with statement)"
            )
            raise RuntimeError(msg)
        return self._client

    async def request(self, method: str, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP request through the shared client.

        Args:
            method: The HTTP method.
            url: The absolute URL to request.
            **kwargs: Request options overriding the client defaults.
                ``None`` values are ignored.

        Returns:
            The outcome of the final attempt.

        Raises:
            RuntimeError: If called outside of the context manager.
            HttpRequestError: If the request fails.
            TypeError: If an option is unknown.
            ValueError: If the options are invalid.
        """
        client = self._ensure_client()
        options = RequestOptions(
            url=url, method=method, client=client, ssl_context=self._ssl_context, **self._defaults
        )
        return await request_async(options, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP GET request through the shared client."""
        return await self.request("GET", url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP HEAD request through the shared client."""
        return await self.request("HEAD", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP POST request through the shared client."""
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP PUT request through the shared client."""
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP DELETE request through the shared client."""
        return await self.request("DELETE", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP PATCH request through the shared client."""
        return await self.request("PATCH", url, **kwargs)

    async def options(self, url: str, **kwargs: Any) -> RequestOutcome:
        r"""Send an HTTP OPTIONS request through the shared client."""
        return await self.request("OPTIONS", url, **kwargs)
