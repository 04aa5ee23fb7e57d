r"""Default configurations for outbound requests with automatic retry
logic."""

from __future__ import annotations

__all__ = [
    "CONTEXT_EXTENSION",
    "DEFAULT_BACKOFF_DELAY",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_BACKOFF_DELAY",
    "RETRY_STATUS_CODES",
]

# HTTP status codes that should trigger automatic retry
# 408: Request Timeout
# 502: Bad Gateway - Upstream server error
# 503: Service Unavailable - Server overloaded or down
# 504: Gateway Timeout - Upstream server timeout
RETRY_STATUS_CODES = (408, 502, 503, 504)

# Default maximum number of attempts, including the initial one
# With 10: one initial attempt followed by up to 9 retries
DEFAULT_MAX_ATTEMPTS = 10

# Default exponential backoff: wait = base_delay * (2 ** retry_index),
# capped at DEFAULT_MAX_BACKOFF_DELAY
# With 0.1: 1st retry waits 0.1s, 2nd waits 0.2s, 3rd waits 0.4s, ...
DEFAULT_BACKOFF_DELAY = 0.1
DEFAULT_MAX_BACKOFF_DELAY = 1.0

# Key of ``httpx.Request.extensions`` holding the request context
CONTEXT_EXTENSION = "context"
