r"""Parameter validation utilities for request options.

This module provides validation functions for request options to ensure
they meet the required constraints before a request is attempted.
"""

from __future__ import annotations

__all__ = [
    "validate_max_redirects",
    "validate_method",
    "validate_request_params",
    "validate_timeout",
    "validate_url",
]

import httpx

from h2tp.core.config import HTTP_METHODS


def validate_url(url: str) -> None:
    """Validate that a URL is absolute and uses the http or https scheme.

    Args:
        url: The URL to validate.

    Raises:
        ValueError: If the URL is not an absolute http(s) URL.

    Example:
        ```pycon
        >>> from h2tp.core.validation import validate_url
        >>> validate_url("https://api.example.com/data")
        >>> validate_url("/data")  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: url must be an absolute http(s) URL, got '/data'

        ```
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        msg = f"url must be an absolute http(s) URL, got {url!r}"
        raise ValueError(msg) from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        msg = f"url must be an absolute http(s) URL, got {url!r}"
        raise ValueError(msg)


def validate_method(method: str) -> None:
    """Validate an HTTP method name.

    Args:
        method: The HTTP method name. Must be uppercase and one of
            ``HTTP_METHODS``.

    Raises:
        ValueError: If the method is not supported.

    Example:
        ```pycon
        >>> from h2tp.core.validation import validate_method
        >>> validate_method("GET")
        >>> validate_method("FETCH")  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: method must be one of ...

        ```
    """
    if method not in HTTP_METHODS:
        msg = f"method must be one of {', '.join(HTTP_METHODS)}, got {method!r}"
        raise ValueError(msg)


def validate_timeout(timeout: float) -> None:
    """Validate the timeout parameter.

    Args:
        timeout: Maximum milliseconds an attempt may take. ``0``
            disables the timeout.

    Raises:
        ValueError: If timeout is negative.

    Example:
        ```pycon
        >>> from h2tp.core.validation import validate_timeout
        >>> validate_timeout(5000)
        >>> validate_timeout(0)
        >>> validate_timeout(-1)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout must be >= 0, got -1

        ```
    """
    if timeout < 0:
        msg = f"timeout must be >= 0, got {timeout}"
        raise ValueError(msg)


def validate_max_redirects(max_redirects: int) -> None:
    """Validate the redirect budget.

    Args:
        max_redirects: Maximum number of redirects to follow. ``0``
            disables redirect following.

    Raises:
        ValueError: If max_redirects is negative.
    """
    if max_redirects < 0:
        msg = f"max_redirects must be >= 0, got {max_redirects}"
        raise ValueError(msg)


def validate_request_params(
    url: str,
    method: str,
    timeout: float,
    max_redirects: int,
    proxy: str | None = None,
) -> None:
    """Validate all request parameters at once.

    Args:
        url: The target URL.
        method: The HTTP method name.
        timeout: Maximum milliseconds an attempt may take.
        max_redirects: Maximum number of redirects to follow.
        proxy: The optional proxy URL.

    Raises:
        ValueError: If any parameter fails validation.

    Example:
        ```pycon
        >>> from h2tp.core.validation import validate_request_params
        >>> validate_request_params(
        ...     url="https://api.example.com", method="GET", timeout=1000, max_redirects=3
        ... )

        ```
    """
    validate_url(url)
    validate_method(method)
    validate_timeout(timeout)
    validate_max_redirects(max_redirects)
    if proxy is not None:
        validate_url(proxy)
