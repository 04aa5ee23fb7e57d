r"""Define the exceptions raised by the retry transports."""

from __future__ import annotations

__all__ = ["BodyReadError", "RetransportError"]


class RetransportError(Exception):
    """Base class of the errors raised by retransport itself.

    Errors raised by the wrapped transport are never wrapped in this
    class, they are propagated unchanged.
    """


class BodyReadError(RetransportError):
    """Raised when the request body cannot be buffered before the first
    attempt.

    No attempt is made when this error is raised.

    Args:
        method: The HTTP method of the request.
        url: The URL of the request.
        cause: The exception raised while reading the body.

    Example:
        ```pycon
        >>> from retransport.exceptions import BodyReadError
        >>> error = BodyReadError("POST", "https://api.example.com/items", OSError("eof"))
        >>> str(error)
        'failed to read the body of POST https://api.example.com/items: eof'

        ```
    """

    def __init__(self, method: str, url: str, cause: Exception) -> None:
        super().__init__(f"failed to read the body of {method} {url}: {cause}")
        self.method = method
        self.url = url
        self.cause = cause
