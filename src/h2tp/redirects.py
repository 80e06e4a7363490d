r"""Redirect detection and request state rewriting.

This module decides whether a response is a redirect to follow and
rewrites the request state for the next hop. The hop loop itself lives
in ``h2tp.request_async``.
"""

from __future__ import annotations

__all__ = ["follow_redirect", "is_redirect_status", "redirect_location", "same_origin"]

import logging
from typing import TYPE_CHECKING

import httpx

from h2tp.core.config import REDIRECT_STATUS_RANGE

if TYPE_CHECKING:
    from h2tp.models import RequestSpec

logger: logging.Logger = logging.getLogger(__name__)


def is_redirect_status(status_code: int) -> bool:
    """Indicate whether a status code is in the redirect range.

    Args:
        status_code: The HTTP status code.

    Returns:
        ``True`` if ``300 <= status_code <= 399``.

    Example:
        ```pycon
        >>> from h2tp.redirects import is_redirect_status
        >>> is_redirect_status(301)
        True
        >>> is_redirect_status(200)
        False
        >>> is_redirect_status(404)
        False

        ```
    """
    low, high = REDIRECT_STATUS_RANGE
    return low <= status_code <= high


def same_origin(url: httpx.URL, other: httpx.URL) -> bool:
    """Indicate whether two URLs share scheme, host and port.

    Example:
        ```pycon
        >>> import httpx
        >>> from h2tp.redirects import same_origin
        >>> same_origin(httpx.URL("http://a.com/x"), httpx.URL("http://a.com:80/y"))
        True
        >>> same_origin(httpx.URL("http://a.com/"), httpx.URL("https://a.com/"))
        False

        ```
    """
    return url.scheme == other.scheme and url.host == other.host and url.port == other.port


def redirect_location(response: httpx.Response, url: str, max_redirects: int) -> str | None:
    """Return the absolute URL of a redirect to follow.

    A response is followed when its status is in the redirect range,
    the redirect budget is positive and a ``location`` header is
    present.

    Args:
        response: The response of the current attempt.
        url: The URL of the current attempt, used to resolve relative
            locations.
        max_redirects: The remaining redirect budget.

    Returns:
        The absolute redirect URL, or ``None`` if the response is
        terminal.
    """
    if not is_redirect_status(response.status_code) or max_redirects <= 0:
        return None
    location = response.headers.get("location")
    if not location:
        return None
    return str(httpx.URL(url).join(location))


def follow_redirect(spec: RequestSpec, location: str) -> None:
    """Rewrite the request state for the next hop.

    The URL is replaced, the budget decremented and the ``host`` header
    removed so that it is regenerated from the new target. The
    ``authorization`` header is also removed when the redirect leaves
    the origin. A ``proxy-authorization`` header derived from the proxy
    URL is removed too, so it never travels through a tunnel.

    Args:
        spec: The request state. It is updated in place.
        location: The absolute redirect URL.
    """
    previous = httpx.URL(spec.url)
    target = httpx.URL(location)
    logger.debug(
        f"{spec.method} request to {spec.url} redirected to {location} "
        f"({spec.max_redirects - 1} redirects left)"
    )
    spec.url = location
    spec.max_redirects -= 1
    spec.headers.pop("host", None)
    # Proxy credentials are derived again only if the next hop is forwarded
    if "proxy-authorization" in spec.derived_headers:
        spec.headers.pop("proxy-authorization", None)
        spec.derived_headers.discard("proxy-authorization")
    if not same_origin(previous, target):
        spec.headers.pop("authorization", None)
