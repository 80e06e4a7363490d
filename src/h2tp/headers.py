r"""Header normalization for outgoing requests.

The normalizer injects the headers derived from the request state
(``authorization``, ``proxy-authorization``, ``host``,
``accept-encoding`` and ``content-type``) without ever overriding a
header the caller supplied.
"""

from __future__ import annotations

__all__ = ["basic_auth", "lowercase_headers", "normalize_headers", "serialize_payload"]

import base64
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from h2tp.core.config import ACCEPT_ENCODING, JSON_CONTENT_TYPE
from h2tp.models import lowercase_headers

if TYPE_CHECKING:
    from h2tp.models import RequestSpec

logger: logging.Logger = logging.getLogger(__name__)


def basic_auth(username: str, password: str) -> str:
    """Build the value of an HTTP Basic authorization header.

    Args:
        username: The decoded username.
        password: The decoded password.

    Returns:
        The header value.

    Example:
        ```pycon
        >>> from h2tp.headers import basic_auth
        >>> basic_auth("user", "pass")
        'Basic dXNlcjpwYXNz'

        ```
    """
    credentials = f"{username}:{password}".encode()
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


def _userinfo_auth(url: httpx.URL) -> str | None:
    # httpx.URL percent-decodes username and password
    if not url.userinfo:
        return None
    return basic_auth(url.username, url.password)


def _is_structured(payload: Any) -> bool:
    return payload is not None and not isinstance(payload, (str, bytes, bytearray, memoryview))


def serialize_payload(payload: Any) -> str | bytes | None:
    """Serialize a structured payload to its JSON text.

    Args:
        payload: The request payload.

    Returns:
        ``payload`` unchanged if it is ``None``, text or bytes, otherwise
        its JSON text.

    Example:
        ```pycon
        >>> from h2tp.headers import serialize_payload
        >>> serialize_payload({"data": "dummy"})
        '{"data": "dummy"}'
        >>> serialize_payload(b"raw")
        b'raw'

        ```
    """
    if _is_structured(payload):
        return json.dumps(payload)
    return payload


def normalize_headers(spec: RequestSpec) -> dict[str, str]:
    """Inject the derived headers into the request state.

    Each rule only applies when the header is absent:

    - ``authorization`` from the URL userinfo (HTTP Basic)
    - ``proxy-authorization`` from the proxy userinfo, when the request
      is forwarded through the proxy without a tunnel
    - ``host`` from the target URL
    - ``accept-encoding`` when compression is enabled
    - ``content-type`` when the payload is a structured value

    A structured payload is always serialized to JSON.

    ``spec.headers`` and ``spec.payload`` are updated in place.

    Args:
        spec: The request state of the current attempt.

    Returns:
        The normalized header mapping (``spec.headers``).
    """
    headers = spec.headers
    url = httpx.URL(spec.url)

    if "authorization" not in headers:
        authorization = _userinfo_auth(url)
        if authorization is not None:
            headers["authorization"] = authorization

    if spec.uses_forward_proxy and "proxy-authorization" not in headers:
        proxy_authorization = _userinfo_auth(httpx.URL(spec.proxy))
        if proxy_authorization is not None:
            headers["proxy-authorization"] = proxy_authorization
            spec.derived_headers.add("proxy-authorization")

    if "host" not in headers:
        headers["host"] = url.netloc.decode("ascii")

    if spec.compression and "accept-encoding" not in headers:
        headers["accept-encoding"] = ACCEPT_ENCODING

    if _is_structured(spec.payload):
        if "content-type" not in headers:
            headers["content-type"] = JSON_CONTENT_TYPE
        spec.payload = serialize_payload(spec.payload)

    logger.debug(f"{spec.method} request to {spec.url} uses headers {sorted(headers)}")
    return headers
