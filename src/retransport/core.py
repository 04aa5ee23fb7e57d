r"""Shared logic of the sync and async retry transports.

These helpers hold everything that does not depend on blocking or
awaiting: deriving the request of one attempt and deciding whether an
attempt is followed by another one.
"""

from __future__ import annotations

__all__ = ["build_attempt_request", "log_extra", "should_retry_response"]

from typing import TYPE_CHECKING, Any

import httpx

from retransport.attempt import with_attempt
from retransport.config import CONTEXT_EXTENSION

if TYPE_CHECKING:
    from retransport.body import BufferedBody
    from retransport.context import Context
    from retransport.policy import RetryPolicy


def build_attempt_request(
    request: httpx.Request,
    ctx: Context,
    body: BufferedBody | None,
    attempt: int,
) -> httpx.Request:
    r"""Derive the request sent by one attempt.

    Method, URL, headers and extensions are copied from the original
    request. The stream is a fresh replay of the buffered body, or the
    original stream when it can be replayed as is. The context extension
    is ``ctx`` annotated with the attempt number.

    Args:
        request: The request received by the retry transport.
        ctx: The context of the original request.
        body: The buffered body, or ``None`` if the original stream is
            replayable.
        attempt: The 1-indexed attempt number.

    Returns:
        The request to hand to the wrapped transport.
    """
    return httpx.Request(
        method=request.method,
        url=request.url,
        headers=request.headers,
        stream=request.stream if body is None else body.stream(),
        extensions={**request.extensions, CONTEXT_EXTENSION: with_attempt(ctx, attempt)},
    )


def should_retry_response(
    policy: RetryPolicy,
    response: httpx.Response,
    attempt: int,
) -> tuple[bool, str]:
    r"""Determine if a response should be followed by another attempt.

    Cancellation is not considered here, the transports check the
    context once this returns ``True``.

    Args:
        policy: The retry policy.
        response: The response of attempt ``attempt``.
        attempt: The 1-indexed attempt number.

    Returns:
        Tuple of (should_retry, reason).

    Example:
        ```pycon
        >>> import httpx
        >>> from retransport import RetryPolicy
        >>> from retransport.core import should_retry_response
        >>> policy = RetryPolicy(max_attempts=2)
        >>> should_retry_response(policy, httpx.Response(503), attempt=1)
        (True, 'retryable status 503')
        >>> should_retry_response(policy, httpx.Response(503), attempt=2)
        (False, 'max attempts (2) reached')
        >>> should_retry_response(policy, httpx.Response(200), attempt=1)
        (False, 'status 200')

        ```
    """
    if not policy.is_retryable(response.status_code):
        return (False, f"status {response.status_code}")
    if not policy.has_attempts_left(attempt):
        return (False, f"max attempts ({policy.max_attempts}) reached")
    return (True, f"retryable status {response.status_code}")


def log_extra(request: httpx.Request, attempt: int, **fields: Any) -> dict[str, Any]:
    r"""Return the ``extra`` fields attached to the transport log
    records."""
    return {"method": request.method, "url": str(request.url), "attempt": attempt, **fields}
