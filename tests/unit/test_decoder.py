r"""Unit tests for the response decoder."""

from __future__ import annotations

import gzip
import zlib

import pytest

from h2tp.decoder import (
    DeflateDecoder,
    GZipDecoder,
    IdentityDecoder,
    read_body,
    select_decoder,
)
from tests.helpers import create_stream_response


def sync_flushed(data: bytes, wbits: int) -> bytes:
    """Compress ``data`` without writing the stream trailer."""
    compressor = zlib.compressobj(wbits=wbits)
    return compressor.compress(data) + compressor.flush(zlib.Z_SYNC_FLUSH)


####################################
#     Tests for select_decoder     #
####################################


@pytest.mark.parametrize(
    ("content_encoding", "decoder_type"),
    [
        ("gzip", GZipDecoder),
        ("deflate", DeflateDecoder),
        (" GZip ", GZipDecoder),
        ("DEFLATE", DeflateDecoder),
        (None, IdentityDecoder),
        ("identity", IdentityDecoder),
        ("br", IdentityDecoder),
        ("", IdentityDecoder),
    ],
)
def test_select_decoder(content_encoding: str | None, decoder_type: type) -> None:
    assert type(select_decoder(content_encoding)) is decoder_type


##############################
#     Tests for decoders     #
##############################


def test_identity_decoder() -> None:
    decoder = IdentityDecoder()
    assert decoder.decode(b"hello") == b"hello"
    assert decoder.flush() == b""


def test_gzip_decoder_chunked() -> None:
    data = gzip.compress(b"hello world")
    decoder = GZipDecoder()
    out = b"".join(decoder.decode(data[i : i + 3]) for i in range(0, len(data), 3))
    assert out + decoder.flush() == b"hello world"


def test_deflate_decoder() -> None:
    decoder = DeflateDecoder()
    assert decoder.decode(zlib.compress(b"hello")) + decoder.flush() == b"hello"


def test_gzip_decoder_truncated_stream() -> None:
    decoder = GZipDecoder()
    out = decoder.decode(sync_flushed(b"hello", zlib.MAX_WBITS | 16))
    assert out + decoder.flush() == b"hello"


def test_gzip_decoder_malformed_stream() -> None:
    with pytest.raises(zlib.error):
        GZipDecoder().decode(b"definitely not gzip")


###############################
#     Tests for read_body     #
###############################


@pytest.mark.asyncio
async def test_read_body_identity() -> None:
    response = create_stream_response(body=b"plain body")
    assert await read_body(response) == "plain body"


@pytest.mark.asyncio
async def test_read_body_gzip() -> None:
    response = create_stream_response(
        headers={"content-encoding": "gzip"}, body=gzip.compress(b"hello")
    )
    assert await read_body(response) == "hello"


@pytest.mark.asyncio
async def test_read_body_deflate() -> None:
    response = create_stream_response(
        headers={"content-encoding": "deflate"}, body=zlib.compress(b"hello")
    )
    assert await read_body(response) == "hello"


@pytest.mark.asyncio
async def test_read_body_truncated_deflate() -> None:
    response = create_stream_response(
        headers={"content-encoding": "deflate"}, body=sync_flushed(b"partial", zlib.MAX_WBITS)
    )
    assert await read_body(response) == "partial"


@pytest.mark.asyncio
async def test_read_body_unknown_encoding_passthrough() -> None:
    response = create_stream_response(headers={"content-encoding": "br"}, body=b"\x0bbrotli")
    assert await read_body(response) == "\x0bbrotli"


@pytest.mark.asyncio
async def test_read_body_malformed_gzip() -> None:
    response = create_stream_response(headers={"content-encoding": "gzip"}, body=b"not gzip")
    with pytest.raises(zlib.error):
        await read_body(response)


@pytest.mark.asyncio
async def test_read_body_utf8() -> None:
    response = create_stream_response(body="héllo wörld".encode())
    assert await read_body(response) == "héllo wörld"


@pytest.mark.asyncio
async def test_read_body_on_data_sink() -> None:
    chunks = []
    response = create_stream_response(
        headers={"content-encoding": "gzip"}, body=gzip.compress(b"streamed")
    )
    body = await read_body(response, on_data=chunks.append)
    assert body == ""
    assert b"".join(chunks) == b"streamed"
    assert all(chunks)


@pytest.mark.asyncio
async def test_read_body_empty() -> None:
    chunks = []
    assert await read_body(create_stream_response(), on_data=chunks.append) == ""
    assert chunks == []
