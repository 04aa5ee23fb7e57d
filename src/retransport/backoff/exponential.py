r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = ["ExponentialBackoff"]

from retransport.backoff.base import BaseBackoffStrategy
from retransport.config import DEFAULT_BACKOFF_DELAY, DEFAULT_MAX_BACKOFF_DELAY


class ExponentialBackoff(BaseBackoffStrategy):
    """Exponential backoff strategy.

    Calculates delay as: base_delay * (2 ** retry_index), capped at
    max_delay. This is the default schedule of ``RetryPolicy``.

    Args:
        base_delay: The delay before the first retry (default: 0.1).
        max_delay: Maximum delay cap in seconds (default: 1.0). ``None``
            disables the cap.

    Example:
        ```pycon
        >>> from retransport.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff()
        >>> backoff.calculate(0)
        0.1
        >>> backoff.calculate(1)
        0.2
        >>> backoff.calculate(2)
        0.4
        >>> backoff.calculate(10)  # Would be 102.4, but capped
        1.0

        ```
    """

    def __init__(
        self,
        base_delay: float = DEFAULT_BACKOFF_DELAY,
        max_delay: float | None = DEFAULT_MAX_BACKOFF_DELAY,
    ) -> None:
        if base_delay < 0:
            msg = f"base_delay must be non-negative, got {base_delay}"
            raise ValueError(msg)
        if max_delay is not None and max_delay <= 0:
            msg = f"max_delay must be positive if specified, got {max_delay}"
            raise ValueError(msg)

        self.base_delay = base_delay
        self.max_delay = max_delay

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(base_delay={self.base_delay}, "
            f"max_delay={self.max_delay})"
        )

    def calculate(self, retry_index: int) -> float:
        delay = self.base_delay * (2**retry_index)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay
