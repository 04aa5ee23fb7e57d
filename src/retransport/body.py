r"""Buffer a request body once so it can be replayed on every attempt."""

from __future__ import annotations

__all__ = ["BufferedBody", "is_replayable"]

import logging

import httpx

from retransport.exceptions import BodyReadError

logger: logging.Logger = logging.getLogger(__name__)


def is_replayable(request: httpx.Request) -> bool:
    r"""Indicate if the stream of a request can be sent again as is.

    A request built from bytes, or without a body, carries an
    ``httpx.ByteStream`` which restarts from its first byte every time
    it is iterated. Any other stream may be one-shot and is buffered.

    Example:
        ```pycon
        >>> import httpx
        >>> from retransport.body import is_replayable
        >>> is_replayable(httpx.Request("POST", "https://api.example.com", content=b"{}"))
        True
        >>> is_replayable(httpx.Request("POST", "https://api.example.com", content=iter([b"{}"])))
        False

        ```
    """
    return isinstance(request.stream, httpx.ByteStream)


class BufferedBody:
    r"""Implement an in-memory copy of a request body.

    The bytes are captured once and never mutated; every call to
    ``stream`` returns a new stream positioned at the start of the
    body, so each attempt sees an unconsumed body.

    Args:
        content: The body bytes.

    Example:
        ```pycon
        >>> import httpx
        >>> from retransport.body import BufferedBody
        >>> chunks = iter([b'{"key":', b'"value"}'])
        >>> request = httpx.Request("POST", "https://api.example.com", content=chunks)
        >>> body = BufferedBody.from_request(request)
        >>> b"".join(body.stream())
        b'{"key":"value"}'
        >>> b"".join(body.stream())
        b'{"key":"value"}'

        ```
    """

    __slots__ = ("_content",)

    def __init__(self, content: bytes) -> None:
        self._content = bytes(content)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(size={len(self._content)})"

    def __len__(self) -> int:
        return len(self._content)

    @property
    def content(self) -> bytes:
        return self._content

    def stream(self) -> httpx.ByteStream:
        r"""Return a new stream over the body bytes.

        ``httpx.ByteStream`` is both a sync and an async stream, so the
        same buffer serves both transports.
        """
        return httpx.ByteStream(self._content)

    @classmethod
    def from_request(cls, request: httpx.Request) -> BufferedBody | None:
        r"""Read the body of a request exactly once.

        Args:
            request: The request whose body is read.

        Returns:
            The buffered body, or ``None`` if the stream of the request
                can be replayed as is.

        Raises:
            BodyReadError: If the body cannot be read completely.
        """
        if is_replayable(request):
            return None
        try:
            content = request.read()
        except Exception as exc:
            logger.debug(f"Failed to buffer the body of {request.method} {request.url}: {exc}")
            raise BodyReadError(method=request.method, url=str(request.url), cause=exc) from exc
        return cls(content)

    @classmethod
    async def from_request_async(cls, request: httpx.Request) -> BufferedBody | None:
        r"""Asyncio version of ``from_request``, for requests whose body
        is an async stream."""
        if is_replayable(request):
            return None
        try:
            content = await request.aread()
        except Exception as exc:
            logger.debug(f"Failed to buffer the body of {request.method} {request.url}: {exc}")
            raise BodyReadError(method=request.method, url=str(request.url), cause=exc) from exc
        return cls(content)
