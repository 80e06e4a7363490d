r"""Contain the synchronous entry point of the request engine."""

from __future__ import annotations

__all__ = ["request"]

import asyncio
from typing import TYPE_CHECKING, Any

from h2tp.request_async import request_async

if TYPE_CHECKING:
    from h2tp.core.options import RequestOptions
    from h2tp.models import RequestOutcome


def request(options: str | RequestOptions, **overrides: Any) -> RequestOutcome:
    """Send an HTTP request from synchronous code.

    The request runs on a private event loop, so this function cannot
    be called from a running event loop. Use ``request_async`` there.

    Args:
        options: A URL (requested with ``GET``) or a ``RequestOptions``
            instance.
        **overrides: Request options overriding the values of
            ``options``. ``None`` values are ignored.

    Returns:
        The outcome of the final attempt.

    Raises:
        RuntimeError: If called from a running event loop.
        HttpRequestError: If the request fails.

    Example:
        ```pycon
        >>> from h2tp import request
        >>> outcome = request("https://api.example.com/data")  # doctest: +SKIP
        >>> outcome.status_code  # doctest: +SKIP
        200

        ```
    """
    return asyncio.run(request_async(options, **overrides))
