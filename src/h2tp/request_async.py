r"""Contain the asynchronous entry point of the request engine.

``request_async`` validates the options once, then runs attempts in a
loop: each redirect rewrites the request state and starts a fresh
attempt until a terminal response is received or the redirect budget is
exhausted.
"""

from __future__ import annotations

__all__ = ["request_async"]

import logging
from typing import TYPE_CHECKING, Any

import httpx

from h2tp.callbacks import invoke_on_redirect
from h2tp.core.options import RequestOptions
from h2tp.executor import RequestExecutor
from h2tp.models import RequestOutcome, RequestSpec
from h2tp.redirects import follow_redirect

if TYPE_CHECKING:
    from h2tp.models import AttemptResult

logger: logging.Logger = logging.getLogger(__name__)


async def request_async(options: str | RequestOptions, **overrides: Any) -> RequestOutcome:
    """Send an HTTP request, following redirects and decoding the body.

    Args:
        options: A URL (requested with ``GET``) or a ``RequestOptions``
            instance.
        **overrides: Request options overriding the values of
            ``options`` (e.g. ``method``, ``headers``, ``payload``,
            ``timeout``, ``proxy``, ``max_redirects``). ``None`` values
            are ignored.

    Returns:
        The outcome of the final attempt, with every redirect URL
        visited.

    Raises:
        HttpTimeoutError: If an attempt does not settle in time.
        ConnectionClosedError: If a connection closed before a response
            was received.
        HttpConnectionError: On transport-level failures.
        ProxyTunnelError: If the proxy refused a CONNECT tunnel.
        DecodeError: If the response body cannot be decoded.
        ValueError: If the options are invalid.

    Example:
        ```pycon
        >>> import asyncio
        >>> from h2tp import RequestOptions, request_async
        >>> outcome = asyncio.run(request_async("https://api.example.com/data"))  # doctest: +SKIP
        >>> outcome = asyncio.run(
        ...     request_async(
        ...         RequestOptions(
        ...             url="https://api.example.com/data",
        ...             method="POST",
        ...             payload={"key": "value"},
        ...             timeout=5000,
        ...         )
        ...     )
        ... )  # doctest: +SKIP
        >>> outcome.body, outcome.redirections  # doctest: +SKIP

        ```
    """
    options = RequestOptions.from_value(options, **overrides)
    spec = RequestSpec.from_options(options)

    # A client created here lives for this call only
    client = options.client
    owned_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            trust_env=False, verify=True if options.ssl_context is None else options.ssl_context
        )

    try:
        redirections: list[str] = []
        while True:
            result = await RequestExecutor(spec, options, client).execute()
            if result.location is None:
                if redirections:
                    logger.debug(
                        f"{spec.method} request to {options.url} ended at {spec.url} "
                        f"after {len(redirections)} redirects"
                    )
                return RequestOutcome(
                    request=result.request,
                    response=result.response,
                    body=result.body,
                    redirections=redirections,
                )
            _redirect(spec, options, result)
            redirections.append(spec.url)
    finally:
        if owned_client:
            await client.aclose()


def _redirect(spec: RequestSpec, options: RequestOptions, result: AttemptResult) -> None:
    invoke_on_redirect(
        options.on_redirect,
        url=spec.url,
        location=result.location,
        method=spec.method,
        status_code=result.response.status_code,
        remaining=spec.max_redirects - 1,
    )
    follow_redirect(spec, result.location)
