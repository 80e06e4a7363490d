r"""Configuration defaults for HTTP requests.

This module provides the configuration constants shared by the request
options, the header normalizer and the request executor.
"""

from __future__ import annotations

__all__ = [
    "ACCEPT_ENCODING",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_METHOD",
    "DEFAULT_TIMEOUT",
    "HTTP_METHODS",
    "JSON_CONTENT_TYPE",
    "REDIRECT_STATUS_RANGE",
]

# Default timeout in milliseconds for one request attempt
# The timer bounds connection setup, header wait and body streaming
# A value of 0 disables the timeout
DEFAULT_TIMEOUT = 120_000

# Default number of redirects followed for one top-level call
# A value of 0 returns 3xx responses as-is
DEFAULT_MAX_REDIRECTS = 10

DEFAULT_METHOD = "GET"

HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "DELETE", "TRACE", "OPTIONS", "CONNECT", "PATCH")

# Value of the accept-encoding header sent when compression is enabled
ACCEPT_ENCODING = "gzip, deflate"

JSON_CONTENT_TYPE = "application/json"

# Inclusive range of status codes that may trigger a redirect
REDIRECT_STATUS_RANGE = (300, 399)
