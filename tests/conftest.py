from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from unittest.mock import Mock

import httpx
import pytest

from tests.helpers import create_stream_response

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def ok_response() -> httpx.Response:
    """Create a 200 response with a plain text body."""
    return create_stream_response(200, body=b"ok")


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock callback for hook testing."""
    return Mock()


@pytest.fixture
def never_responding_handler() -> Callable[[httpx.Request], httpx.Response]:
    """Create a ``MockTransport`` handler that never answers.

    The handler records its cancellation in ``handler.cancelled``.
    """

    async def handler(request: httpx.Request) -> httpx.Response:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            handler.cancelled = True
            raise

    handler.cancelled = False
    return handler
