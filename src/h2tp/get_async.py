r"""Contain the asynchronous HTTP GET shortcut."""

from __future__ import annotations

__all__ = ["get_async"]

from typing import TYPE_CHECKING, Any

from h2tp.core.options import RequestOptions
from h2tp.request_async import request_async

if TYPE_CHECKING:
    from h2tp.models import RequestOutcome


async def get_async(url: str, **kwargs: Any) -> RequestOutcome:
    r"""Send an HTTP GET request asynchronously.

    Args:
        url: The absolute URL to send the GET request to.
        **kwargs: Other RequestOptions fields, e.g. ``headers``,
            ``payload``, ``timeout``, ``proxy`` or ``client``.

    Returns:
        The outcome of the final attempt.

    Raises:
        HttpRequestError: If the request fails.
        ValueError: If the options are invalid.

    Example:
        ```pycon
        >>> import asyncio
        >>> from h2tp import get_async
        >>> outcome = asyncio.run(get_async("https://api.example.com/data"))  # doctest: +SKIP
        >>> outcome.status_code  # doctest: +SKIP

        ```
    """
    return await request_async(RequestOptions(url=url, method="GET", **kwargs))
