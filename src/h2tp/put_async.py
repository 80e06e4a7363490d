r"""Contain the asynchronous HTTP PUT shortcut."""

from __future__ import annotations

__all__ = ["put_async"]

from typing import TYPE_CHECKING, Any

from h2tp.core.options import RequestOptions
from h2tp.request_async import request_async

if TYPE_CHECKING:
    from h2tp.models import RequestOutcome


async def put_async(url: str, **kwargs: Any) -> RequestOutcome:
    r"""Send an HTTP PUT request asynchronously.

    Args:
        url: The absolute URL to send the PUT request to.
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
        >>> from h2tp import put_async
        >>> outcome = asyncio.run(
        ...     put_async("https://api.example.com/data/1", payload={"key": "value"})
        ... )  # doctest: +SKIP
        >>> outcome.status_code  # doctest: +SKIP

        ```
    """
    return await request_async(RequestOptions(url=url, method="PUT", **kwargs))
