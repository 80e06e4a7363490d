r"""Response body decoding.

This module selects a pass-through or decompressing decoder from the
``content-encoding`` response header and reads a streamed response body
through it. Decompression is delegated to ``zlib``.
"""

from __future__ import annotations

__all__ = [
    "BODY_ENCODING",
    "DeflateDecoder",
    "GZipDecoder",
    "IdentityDecoder",
    "ResponseDecoder",
    "read_body",
    "select_decoder",
]

import logging
import zlib
from typing import TYPE_CHECKING

from h2tp.callbacks import invoke_on_data

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

logger: logging.Logger = logging.getLogger(__name__)

# Text encoding of the buffered body
BODY_ENCODING = "utf-8"


class ResponseDecoder:
    r"""Base class of the response body decoders.

    A decoder is fed raw chunks with ``decode`` and finished with
    ``flush``. The base implementation is the identity transform.
    """

    def decode(self, data: bytes) -> bytes:
        return data

    def flush(self) -> bytes:
        return b""


class IdentityDecoder(ResponseDecoder):
    r"""Pass raw chunks through unchanged."""


class _ZlibDecoder(ResponseDecoder):
    r"""Decompress a stream with ``zlib``.

    The trailing ``flush`` never fails on a truncated stream, so
    responses cut short after a sync flush decode to the data received
    so far.

    Args:
        wbits: The zlib window bits selecting the container format.

    Raises:
        zlib.error: If the stream is malformed.
    """

    def __init__(self, wbits: int) -> None:
        self._decompressor = zlib.decompressobj(wbits)

    def decode(self, data: bytes) -> bytes:
        return self._decompressor.decompress(data)

    def flush(self) -> bytes:
        return self._decompressor.flush()


class GZipDecoder(_ZlibDecoder):
    r"""Decompress a gzip stream."""

    def __init__(self) -> None:
        super().__init__(zlib.MAX_WBITS | 16)


class DeflateDecoder(_ZlibDecoder):
    r"""Decompress a zlib-wrapped deflate stream."""

    def __init__(self) -> None:
        super().__init__(zlib.MAX_WBITS)


DECODERS: dict[str, type[ResponseDecoder]] = {
    "gzip": GZipDecoder,
    "deflate": DeflateDecoder,
}


def select_decoder(content_encoding: str | None) -> ResponseDecoder:
    """Select the decoder matching a ``content-encoding`` header value.

    Args:
        content_encoding: The header value, or ``None`` if absent.

    Returns:
        A gzip or deflate decoder, or the identity decoder for any
        other value.

    Example:
        ```pycon
        >>> from h2tp.decoder import select_decoder
        >>> type(select_decoder("gzip")).__name__
        'GZipDecoder'
        >>> type(select_decoder(None)).__name__
        'IdentityDecoder'
        >>> type(select_decoder("br")).__name__
        'IdentityDecoder'

        ```
    """
    if content_encoding is None:
        return IdentityDecoder()
    return DECODERS.get(content_encoding.strip().lower(), IdentityDecoder)()


async def read_body(
    response: httpx.Response, *, on_data: Callable[[bytes], None] | None = None
) -> str:
    """Read and decode a streamed response body.

    Args:
        response: A response opened with ``stream=True``.
        on_data: Optional sink receiving every decoded chunk. When
            provided, chunks are not buffered and the returned body is
            empty.

    Returns:
        The decoded body as text.

    Raises:
        zlib.error: If the compressed stream is malformed.
    """
    decoder = select_decoder(response.headers.get("content-encoding"))
    chunks: list[bytes] = []

    def deliver(chunk: bytes) -> None:
        if on_data is not None:
            invoke_on_data(on_data, chunk)
        elif chunk:
            chunks.append(chunk)

    async for raw in response.aiter_raw():
        deliver(decoder.decode(raw))
    deliver(decoder.flush())

    body = b"".join(chunks)
    logger.debug(f"Decoded {len(body)} bytes with {type(decoder).__name__}")
    return body.decode(BODY_ENCODING, errors="replace")
