r"""Synchronous httpx transport retrying requests on transient status
codes."""

from __future__ import annotations

__all__ = ["RetryTransport"]

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


class RetryTransport(httpx.BaseTransport):
    r"""Transport decorator retrying requests answered with a retryable
    status code.

    The request body is buffered once and replayed verbatim on every
    attempt. Each attempt carries its number in its context, see
    ``retransport.attempt.attempt_from_request``. Errors raised by the
    wrapped transport are propagated immediately and never retried.
    When the retry budget is exhausted the last response is returned as
    is, so callers must inspect its status code.

    Cancellation of the request context is only observed between
    attempts: the first attempt is always sent, and a cancelled context
    stops the loop before the next attempt or during the backoff wait,
    returning the last response.

    Args:
        transport: The wrapped transport. Defaults to
            ``httpx.HTTPTransport()``.
        policy: The retry policy. Defaults to ``RetryPolicy()``.

    Example:
        ```pycon
        >>> import httpx
        >>> from retransport import RetryPolicy, RetryTransport
        >>> transport = RetryTransport(policy=RetryPolicy(max_attempts=4))
        >>> with httpx.Client(transport=transport) as client:  # doctest: +SKIP
        ...     response = client.get("https://api.example.com/data")
        ...

        ```
    """

    def __init__(
        self,
        transport: httpx.BaseTransport | None = None,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._transport: httpx.BaseTransport = transport or httpx.HTTPTransport()
        self._policy: RetryPolicy = policy or RetryPolicy()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(transport={self._transport!r}, policy={self._policy!r})"

    def __enter__(self) -> Self:
        self._transport.__enter__()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> None:
        self._transport.__exit__(exc_type, exc_val, exc_tb)

    @property
    def transport(self) -> httpx.BaseTransport:
        return self._transport

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def set_transport(self, transport: httpx.BaseTransport) -> None:
        r"""Replace the wrapped transport.

        This is not synchronized with in-flight requests; call it during
        setup, before the transport serves traffic.

        Args:
            transport: The new wrapped transport.
        """
        self._transport = transport

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        r"""Send a request, retrying it according to the policy.

        Args:
            request: The outbound request. Its context is read from
                ``request.extensions["context"]``.

        Returns:
            The response of the last attempt.

        Raises:
            BodyReadError: If the request body cannot be buffered. No
                attempt is made.
            Exception: Any error raised by the wrapped transport, as is.
        """
        ctx = context_from_request(request)
        logger = logger_from_context(ctx)
        body = BufferedBody.from_request(request)

        attempt = 1
        while True:
            try:
                response = self._transport.handle_request(
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
                interrupted = ctx.wait(delay)
            except BaseException:
                response.close()
                raise
            if interrupted:
                logger.debug(
                    f"{request.method} request to {request.url} backoff interrupted: {ctx.err()}",
                    extra=log_extra(request, attempt, status_code=response.status_code),
                )
                return response

            response.close()
            attempt += 1

    def close(self) -> None:
        self._transport.close()
