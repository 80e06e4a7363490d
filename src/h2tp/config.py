r"""Default configurations for HTTP requests.

This module re-exports default configuration constants from
h2tp.core.config.
"""

from __future__ import annotations

__all__ = [
    "ACCEPT_ENCODING",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_METHOD",
    "DEFAULT_TIMEOUT",
    "HTTP_METHODS",
]

from h2tp.core.config import (
    ACCEPT_ENCODING,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT,
    HTTP_METHODS,
)
