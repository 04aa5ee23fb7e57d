r"""Shared test helpers for the retry transport tests.

The recording transports answer with a scripted sequence of status
codes (or raise a scripted error) and record, for every attempt, the
request body and the context they received.
"""

from __future__ import annotations

__all__ = [
    "TEST_URL",
    "AsyncRecordingTransport",
    "OneShotStream",
    "RecordingTransport",
    "TrackedStream",
]

from typing import TYPE_CHECKING

import httpx

from retransport.attempt import attempt_from_request, context_from_request

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator, Sequence

    from retransport.context import Context

TEST_URL = "https://api.example.com/data"


class TrackedStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Response stream remembering whether it was closed."""

    def __init__(self, content: bytes) -> None:
        self.content = content
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        yield self.content

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self.content

    def close(self) -> None:
        self.closed = True

    async def aclose(self) -> None:
        self.closed = True


class OneShotStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Request stream yielding its chunks on the first iteration only.

    Unlike ``httpx.ByteStream`` it does not restart, and a request built
    on it carries no ``Content-Length`` header.
    """

    def __init__(self, chunks: Sequence[bytes]) -> None:
        self.chunks = list(chunks)
        self.iterations = 0

    def __iter__(self) -> Iterator[bytes]:
        self.iterations += 1
        chunks, self.chunks = self.chunks, []
        yield from chunks

    async def __aiter__(self) -> AsyncIterator[bytes]:
        self.iterations += 1
        chunks, self.chunks = self.chunks, []
        for chunk in chunks:
            yield chunk


class RecordingTransport(httpx.BaseTransport):
    """Synchronous transport answering with scripted status codes.

    Args:
        status_codes: The status code returned by each attempt, in order.
        body: The body of every response.
        error: If set, raised by every attempt instead of answering.
        on_attempt: Optional hook called with the request of each attempt.
    """

    def __init__(
        self,
        status_codes: Sequence[int] = (200,),
        body: bytes = b"abc",
        error: Exception | None = None,
        on_attempt: Callable[[httpx.Request], None] | None = None,
    ) -> None:
        self.status_codes = list(status_codes)
        self.body = body
        self.error = error
        self.on_attempt = on_attempt
        self.request_bodies: list[bytes] = []
        self.attempt_numbers: list[int] = []
        self.contexts: list[Context] = []
        self.streams: list[TrackedStream] = []
        self.closed = False

    @property
    def attempts(self) -> int:
        return len(self.attempt_numbers)

    @property
    def ctx(self) -> Context:
        """The context of the last attempt."""
        return self.contexts[-1]

    def _record(self, request: httpx.Request, content: bytes) -> httpx.Response:
        self.request_bodies.append(content)
        self.attempt_numbers.append(attempt_from_request(request))
        self.contexts.append(context_from_request(request))
        if self.on_attempt is not None:
            self.on_attempt(request)
        if self.error is not None:
            raise self.error
        stream = TrackedStream(self.body)
        self.streams.append(stream)
        return httpx.Response(
            self.status_codes[self.attempts - 1], stream=stream, request=request
        )

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self._record(request, b"".join(request.stream))

    def close(self) -> None:
        self.closed = True


class AsyncRecordingTransport(RecordingTransport, httpx.AsyncBaseTransport):
    """Asyncio version of ``RecordingTransport``."""

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        content = b"".join([chunk async for chunk in request.stream])
        return self._record(request, content)

    async def aclose(self) -> None:
        self.closed = True
