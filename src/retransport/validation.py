r"""Parameter validation utilities for the retry policy."""

from __future__ import annotations

__all__ = ["validate_policy_params"]


def validate_policy_params(
    max_attempts: int,
    jitter_factor: float = 0.0,
    status_forcelist: frozenset[int] = frozenset(),
) -> None:
    """Validate retry policy parameters.

    Args:
        max_attempts: Maximum number of attempts, including the initial
            one. Must be >= 1. A value of 1 disables retries.
        jitter_factor: Factor for adding random jitter to backoff delays.
            Must be >= 0.
        status_forcelist: The retryable HTTP status codes. Each code
            must be a valid HTTP status code (100-599).

    Raises:
        ValueError: If any parameter is out of range.

    Example:
        ```pycon
        >>> from retransport.validation import validate_policy_params
        >>> validate_policy_params(max_attempts=4)
        >>> validate_policy_params(max_attempts=4, jitter_factor=0.1)
        >>> validate_policy_params(max_attempts=0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: max_attempts must be >= 1, got 0

        ```
    """
    if max_attempts < 1:
        msg = f"max_attempts must be >= 1, got {max_attempts}"
        raise ValueError(msg)
    if jitter_factor < 0:
        msg = f"jitter_factor must be >= 0, got {jitter_factor}"
        raise ValueError(msg)
    invalid = sorted(code for code in status_forcelist if not 100 <= code <= 599)
    if invalid:
        msg = f"status_forcelist must only contain HTTP status codes, got {invalid}"
        raise ValueError(msg)
