from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import httpx
import pytest

from retransport import RetryPolicy
from retransport.backoff import ConstantBackoff

if TYPE_CHECKING:
    from collections.abc import Generator

REQUEST_BODY = b'{"key":"value""}'


@pytest.fixture
def mock_sleep() -> Generator[Mock, None, None]:
    """Patch time.sleep to make tests run faster."""
    with patch("time.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def mock_asleep() -> Generator[Mock, None, None]:
    """Patch asyncio.sleep to make tests run faster."""
    with patch("asyncio.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def no_wait_policy() -> RetryPolicy:
    """Create a default retry policy without backoff delay."""
    return RetryPolicy(backoff=ConstantBackoff(delay=0.0))


@pytest.fixture
def request_body() -> bytes:
    return REQUEST_BODY


@pytest.fixture
def post_request(request_body: bytes) -> httpx.Request:
    """Create a POST request with a JSON-like body."""
    return httpx.Request("POST", "https://api.example.com/foo", content=request_body)
