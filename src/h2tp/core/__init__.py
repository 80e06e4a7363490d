r"""Core configuration and validation shared by the request engine."""

from __future__ import annotations

__all__ = [
    "ACCEPT_ENCODING",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_METHOD",
    "DEFAULT_TIMEOUT",
    "HTTP_METHODS",
    "RequestOptions",
    "validate_max_redirects",
    "validate_method",
    "validate_request_params",
    "validate_timeout",
    "validate_url",
]

from h2tp.core.config import (
    ACCEPT_ENCODING,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT,
    HTTP_METHODS,
)
from h2tp.core.options import RequestOptions
from h2tp.core.validation import (
    validate_max_redirects,
    validate_method,
    validate_request_params,
    validate_timeout,
    validate_url,
)
