r"""Closed configuration structure for one top-level request.

This module provides the ``RequestOptions`` dataclass that enumerates
every recognized request option and its default. Options are validated
once, when the dataclass is created.
"""

from __future__ import annotations

__all__ = ["RequestOptions"]

from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any

from h2tp.core.config import DEFAULT_MAX_REDIRECTS, DEFAULT_METHOD, DEFAULT_TIMEOUT
from h2tp.core.validation import validate_request_params

if TYPE_CHECKING:
    import ssl
    from collections.abc import Callable, Mapping

    import httpx

    from h2tp.callbacks import RedirectInfo


@dataclass
class RequestOptions:
    """Options of one top-level request.

    Args:
        url: The absolute http(s) URL to request.
        method: The HTTP method. Must be one of ``HTTP_METHODS``.
        compression: Whether to negotiate gzip/deflate compression.
        headers: Optional request headers. Keys are matched
            case-insensitively.
        payload: Optional request payload. ``bytes`` and ``str`` are
            sent verbatim, any other value is serialized to JSON.
        timeout: Maximum milliseconds one attempt may take. ``0``
            disables the timeout.
        proxy: Optional proxy URL.
        tunnel: Whether HTTPS requests through a proxy use a CONNECT
            tunnel. ``None`` means enabled.
        max_redirects: Maximum number of redirects to follow. ``0``
            disables redirect following.
        client: Optional ``httpx.AsyncClient`` reused for the request.
            It is never closed by the engine.
        ssl_context: Optional SSL context used for TLS over tunnels and
            for clients created by the engine.
        on_request: Optional callback observing the outgoing request.
        on_socket: Optional callback observing the network stream.
        on_data: Optional sink receiving decoded body chunks instead of
            buffering them.
        on_redirect: Optional callback called before each redirect.

    Example:
        ```pycon
        >>> from h2tp.core.options import RequestOptions
        >>> options = RequestOptions(url="https://api.example.com/data")
        >>> options.method
        'GET'
        >>> options.timeout
        120000
        >>> merged = options.merge(method="POST")
        >>> merged.method
        'POST'
        >>> options.method  # Original unchanged
        'GET'

        ```
    """

    url: str
    method: str = DEFAULT_METHOD
    compression: bool = True
    headers: Mapping[str, str] | None = None
    payload: Any = None
    timeout: float = DEFAULT_TIMEOUT
    proxy: str | None = None
    tunnel: bool | None = None
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    client: httpx.AsyncClient | None = None
    ssl_context: ssl.SSLContext | None = None
    on_request: Callable[[httpx.Request], None] | None = None
    on_socket: Callable[[Any], None] | None = None
    on_data: Callable[[bytes], None] | None = None
    on_redirect: Callable[[RedirectInfo], None] | None = None

    def __post_init__(self) -> None:
        """Validate options after initialization.

        Raises:
            ValueError: If any option fails validation.
        """
        validate_request_params(
            url=self.url,
            method=self.method,
            timeout=self.timeout,
            max_redirects=self.max_redirects,
            proxy=self.proxy,
        )

    @classmethod
    def from_value(cls, value: str | RequestOptions, **overrides: Any) -> RequestOptions:
        """Build options from a bare URL or from existing options.

        Args:
            value: A URL (requested with ``GET`` and no headers or
                payload) or a ``RequestOptions`` instance.
            **overrides: Options overriding the values of ``value``.
                ``None`` values are ignored.

        Returns:
            The validated options.

        Example:
            ```pycon
            >>> from h2tp.core.options import RequestOptions
            >>> RequestOptions.from_value("http://example.com").method
            'GET'
            >>> RequestOptions.from_value("http://example.com", method="HEAD").method
            'HEAD'

            ```
        """
        if isinstance(value, str):
            return cls(url=value).merge(**overrides)
        return value.merge(**overrides)

    def merge(self, **overrides: Any) -> RequestOptions:
        """Create new options with the specified values overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for options to override.

        Returns:
            A new ``RequestOptions`` instance with overrides applied.

        Raises:
            TypeError: If an override does not name an option.
        """
        names = {option.name for option in fields(self)}
        unknown = sorted(set(overrides) - names)
        if unknown:
            msg = f"Unknown request options: {', '.join(unknown)}"
            raise TypeError(msg)
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)
