r"""h2tp - Asynchronous HTTP/1.1 request engine.

This package sends one logical HTTP request and returns the final
response: it normalizes headers, connects directly, through a
forwarding proxy or through a CONNECT tunnel, follows redirects
iteratively within a budget, decodes gzip and deflate bodies and
enforces a per-attempt timeout. It is built on top of httpx and
httpcore.

Key Features:
    - Header normalization: lowercase names, basic auth from URL
      userinfo, JSON payload serialization, compression negotiation
    - HTTP and HTTPS proxies, with CONNECT tunneling for HTTPS targets
    - Redirect following with a budget and credential stripping
    - Streaming gzip/deflate decoding, with an optional chunk sink
    - Exactly-once settlement of every attempt under a timeout
    - Lifecycle hooks for observability

Example:
    ```pycon
    >>> import asyncio
    >>> from h2tp import RequestOptions, request, request_async
    >>> outcome = request("https://api.example.com/data")  # doctest: +SKIP
    >>> outcome = asyncio.run(
    ...     request_async(
    ...         RequestOptions(
    ...             url="https://api.example.com/data",
    ...             method="POST",
    ...             payload={"key": "value"},
    ...             proxy="http://proxy.local:3128",
    ...         )
    ...     )
    ... )  # doctest: +SKIP
    >>> outcome.status_code, outcome.body  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "AsyncRequestClient",
    "ConnectionClosedError",
    "DecodeError",
    "HttpConnectionError",
    "HttpRequestError",
    "HttpTimeoutError",
    "ProxyTunnelError",
    "RedirectInfo",
    "RequestOptions",
    "RequestOutcome",
    "__version__",
    "delete_async",
    "get_async",
    "head_async",
    "options_async",
    "patch_async",
    "post_async",
    "put_async",
    "request",
    "request_async",
]

from importlib.metadata import PackageNotFoundError, version

from h2tp.callbacks import RedirectInfo
from h2tp.client_async import AsyncRequestClient
from h2tp.core.options import RequestOptions
from h2tp.delete_async import delete_async
from h2tp.exceptions import (
    ConnectionClosedError,
    DecodeError,
    HttpConnectionError,
    HttpRequestError,
    HttpTimeoutError,
    ProxyTunnelError,
)
from h2tp.get_async import get_async
from h2tp.head_async import head_async
from h2tp.models import RequestOutcome
from h2tp.options_async import options_async
from h2tp.patch_async import patch_async
from h2tp.post_async import post_async
from h2tp.put_async import put_async
from h2tp.request import request
from h2tp.request_async import request_async

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
