r"""Asyncio httpx transport retrying requests on transient status
codes."""

from __future__ import annotations

__all__ = ["AsyncRetryTransport"]

from typing import TYPE_CHECKING

import httpx

from retransport.attempt import context_from_request
from retransport.body import BufferedBody
from retransport.core import build_attempt_request, log_extra, should_retry_response
from retransport.log import logger_from_context
from retransport.policy import RetryPolicy

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self


class AsyncRetryTransport(httpx.AsyncBaseTransport):
    r"""Asyncio twin of ``RetryTransport``.

    The retry loop, the body replay, the attempt numbering and the
    cancellation rules are identical; backoff waits suspend only the
    calling task.

    Args:
        transport: The wrapped transport. Defaults to
            ``httpx.AsyncHTTPTransport()``.
        policy: The retry policy. Defaults to ``RetryPolicy()``.

    Example:
        ```pycon
        >>> import httpx
        >>> from retransport import AsyncRetryTransport
        >>> async def fetch() -> httpx.Response:
        ...     async with httpx.AsyncClient(transport=AsyncRetryTransport()) as client:
        ...         return await client.get("https://api.example.com/data")
        ...

        ```
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._transport: httpx.AsyncBaseTransport = transport or httpx.AsyncHTTPTransport()
        self._policy: RetryPolicy = policy or RetryPolicy()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(transport={self._transport!r}, policy={self._policy!r})"

    async def __aenter__(self) -> Self:
        await self._transport.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> None:
        await self._transport.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def transport(self) -> httpx.AsyncBaseTransport:
        return self._transport

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def set_transport(self, transport: httpx.AsyncBaseTransport) -> None:
        r"""Replace the wrapped transport. Call it during setup only."""
        self._transport = transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        r"""Send a request, retrying it according to the policy.

        Args:
            request: The outbound request. Its context is read from
                ``request.extensions["context"]``.

        Returns:
            The response of the last attempt.

        Raises:
            BodyReadError: If the request body cannot be buffered.
            Exception: Any error raised by the wrapped transport, as is.
        """
        ctx = context_from_request(request)
        logger = logger_from_context(ctx)
        body = await BufferedBody.from_request_async(request)

        attempt = 1
        while True:
            try:
                response = await self._transport.handle_async_request(
                    build_attempt_request(request, ctx, body, attempt)
                )
            except Exception as exc:
                logger.debug(
                    f"{request.method} request to {request.url} failed on attempt {attempt}: {exc}",
                    extra=log_extra(request, attempt),
                )
                raise

            should_retry, reason = should_retry_response(self._policy, response, attempt)
            if not should_retry:
                logger.debug(
                    f"{request.method} request to {request.url} completed on attempt "
                    f"{attempt} ({reason})",
                    extra=log_extra(request, attempt, status_code=response.status_code),
                )
                return response

            if ctx.done():
                logger.debug(
                    f"{request.method} request to {request.url} not retried after attempt "
                    f"{attempt}: {ctx.err()}",
                    extra=log_extra(request, attempt, status_code=response.status_code),
                )
                return response

            try:
                delay = self._policy.backoff_delay(attempt)
                logger.debug(
                    f"{request.method} request to {request.url} got {reason} on attempt "
                    f"{attempt}, retrying in {delay:.2f}s",
                    extra=log_extra(request, attempt, status_code=response.status_code),
                )
                interrupted = await ctx.wait_async(delay)
            except BaseException:
                await response.aclose()
                raise
            if interrupted:
                logger.debug(
                    f"{request.method} request to {request.url} backoff interrupted: {ctx.err()}",
                    extra=log_extra(request, attempt, status_code=response.status_code),
                )
                return response

            await response.aclose()
            attempt += 1

    async def aclose(self) -> None:
        await self._transport.aclose()
