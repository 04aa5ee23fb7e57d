r"""Carry the current attempt number in a request context.

The retry transports annotate the context of every attempt they issue,
so the wrapped transport, and anything it calls, can tell which attempt
it is serving.

Example:
    ```pycon
    >>> from retransport.attempt import attempt_from_context, with_attempt
    >>> from retransport.context import background
    >>> attempt_from_context(background())
    0
    >>> attempt_from_context(with_attempt(background(), 3))
    3

    ```
"""

from __future__ import annotations

__all__ = [
    "attempt_from_context",
    "attempt_from_request",
    "context_from_request",
    "with_attempt",
    "with_context",
]

from typing import TYPE_CHECKING

import httpx

from retransport.config import CONTEXT_EXTENSION
from retransport.context import Context, background, with_value

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any


class _AttemptKey:
    def __repr__(self) -> str:
        return "retransport.attempt"


# Only this module holds the key, so no other context value can collide
_ATTEMPT_KEY = _AttemptKey()


def with_attempt(ctx: Context, attempt: int) -> Context:
    r"""Derive a context recording the attempt number.

    Args:
        ctx: The parent context.
        attempt: The 1-indexed attempt number.

    Returns:
        The derived context.

    Raises:
        ValueError: If ``attempt`` is lower than 1.
    """
    if attempt < 1:
        msg = f"attempt must be >= 1, got {attempt}"
        raise ValueError(msg)
    return with_value(ctx, _ATTEMPT_KEY, attempt)


def attempt_from_context(ctx: Context | None) -> int:
    r"""Return the attempt number recorded in a context.

    Args:
        ctx: The context to query, or ``None``.

    Returns:
        The 1-indexed attempt number, or 0 if the context was not
            produced by a retry transport.
    """
    if ctx is None:
        return 0
    attempt = ctx.value(_ATTEMPT_KEY)
    return 0 if attempt is None else attempt


def context_from_request(request: httpx.Request) -> Context:
    r"""Return the context of a request.

    Args:
        request: The outbound request.

    Returns:
        The context stored in the request extensions, or the background
            context if the request carries none.

    Raises:
        TypeError: If the extension holds something else than a context.
    """
    return _context_from_extensions(request.extensions)


def attempt_from_request(request: httpx.Request) -> int:
    r"""Return the attempt number of a request, or 0 if it was not issued
    by a retry transport.

    Example:
        ```pycon
        >>> import httpx
        >>> from retransport.attempt import attempt_from_request
        >>> attempt_from_request(httpx.Request("GET", "https://api.example.com"))
        0

        ```
    """
    return attempt_from_context(context_from_request(request))


def with_context(request: httpx.Request, ctx: Context) -> httpx.Request:
    r"""Return a shallow copy of a request carrying another context.

    The copy shares the stream of ``request``; method, URL, headers and
    the other extensions are preserved.

    Args:
        request: The request to copy.
        ctx: The context of the copy.

    Returns:
        The new request.

    Example:
        ```pycon
        >>> import httpx
        >>> from retransport.attempt import context_from_request, with_context
        >>> from retransport.context import background, with_cancel
        >>> ctx, cancel = with_cancel(background())
        >>> request = with_context(httpx.Request("GET", "https://api.example.com"), ctx)
        >>> context_from_request(request) is ctx
        True

        ```
    """
    return httpx.Request(
        method=request.method,
        url=request.url,
        headers=request.headers,
        stream=request.stream,
        extensions={**request.extensions, CONTEXT_EXTENSION: ctx},
    )


def _context_from_extensions(extensions: Mapping[str, Any]) -> Context:
    ctx = extensions.get(CONTEXT_EXTENSION)
    if ctx is None:
        return background()
    if not isinstance(ctx, Context):
        msg = f"request extension {CONTEXT_EXTENSION!r} must be a Context, got {type(ctx).__name__}"
        raise TypeError(msg)
    return ctx
