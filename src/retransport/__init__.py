r"""retransport - Resilient outbound HTTP transports for httpx.

This package provides httpx transports that wrap another transport and
transparently retry requests answered with a transient status code,
replaying the request body verbatim and exposing the attempt number to
the wrapped transport through the request context.

Key Features:
    - Drop-in ``transport=`` for ``httpx.Client`` and ``httpx.AsyncClient``
    - Retry on configurable status codes (408, 502, 503, 504 by default)
    - Request bodies buffered once and replayed on every attempt
    - Cancellable request contexts observed between attempts and during
      backoff waits
    - Attempt number readable downstream with ``attempt_from_request``
    - Exponential, constant or custom backoff schedules

Example:
    ```pycon
    >>> import httpx
    >>> from retransport import RetryPolicy, RetryTransport
    >>> from retransport.backoff import ConstantBackoff
    >>> statuses = iter([502, 503, 200])
    >>> upstream = httpx.MockTransport(lambda request: httpx.Response(next(statuses)))
    >>> transport = RetryTransport(upstream, RetryPolicy(backoff=ConstantBackoff(0.0)))
    >>> with httpx.Client(transport=transport) as client:
    ...     client.get("https://api.example.com/data").status_code
    ...
    200

    ```
"""

from __future__ import annotations

__all__ = [
    "AsyncRetryTransport",
    "BodyReadError",
    "BufferedBody",
    "RetransportError",
    "RetryPolicy",
    "RetryTransport",
    "__version__",
    "attempt_from_context",
    "attempt_from_request",
    "context_from_request",
    "with_attempt",
    "with_context",
]

from importlib.metadata import PackageNotFoundError, version

from retransport.attempt import (
    attempt_from_context,
    attempt_from_request,
    context_from_request,
    with_attempt,
    with_context,
)
from retransport.body import BufferedBody
from retransport.exceptions import BodyReadError, RetransportError
from retransport.policy import RetryPolicy
from retransport.transport import RetryTransport
from retransport.transport_async import AsyncRetryTransport

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
