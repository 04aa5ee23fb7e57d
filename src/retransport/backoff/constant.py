r"""Constant backoff strategy."""

from __future__ import annotations

__all__ = ["ConstantBackoff"]

from retransport.backoff.base import BaseBackoffStrategy


class ConstantBackoff(BaseBackoffStrategy):
    """Constant/fixed backoff strategy.

    Returns the same delay before every retry. ``ConstantBackoff(0.0)``
    disables waiting entirely, which is convenient in tests.

    Args:
        delay: The fixed delay in seconds (default: 0.1).

    Example:
        ```pycon
        >>> from retransport.backoff import ConstantBackoff
        >>> backoff = ConstantBackoff(delay=2.5)
        >>> backoff.calculate(0)
        2.5
        >>> backoff.calculate(10)
        2.5

        ```
    """

    def __init__(self, delay: float = 0.1) -> None:
        if delay < 0:
            msg = f"delay must be non-negative, got {delay}"
            raise ValueError(msg)

        self.delay = delay

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(delay={self.delay})"

    def calculate(self, retry_index: int) -> float:  # noqa: ARG002
        return self.delay
