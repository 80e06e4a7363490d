r"""Contain the asynchronous HTTP OPTIONS shortcut."""

from __future__ import annotations

__all__ = ["options_async"]

from typing import TYPE_CHECKING, Any

from h2tp.core.options import RequestOptions
from h2tp.request_async import request_async

if TYPE_CHECKING:
    from h2tp.models import RequestOutcome


async def options_async(url: str, **kwargs: Any) -> RequestOutcome:
    r"""Send an HTTP OPTIONS request asynchronously.

    Args:
        url: The absolute URL to send the OPTIONS request to.
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
        >>> from h2tp import options_async
        >>> outcome = asyncio.run(options_async("https://api.example.com/data"))  # doctest: +SKIP
        >>> outcome.status_code  # doctest: +SKIP

        ```
    """
    return await request_async(RequestOptions(url=url, method="OPTIONS", **kwargs))
