r"""Immutable retry policy shared by the sync and async retry
transports."""

from __future__ import annotations

__all__ = ["RetryPolicy"]

import logging
import random
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from retransport.backoff import BaseBackoffStrategy, ExponentialBackoff, to_backoff
from retransport.config import DEFAULT_MAX_ATTEMPTS, RETRY_STATUS_CODES
from retransport.validation import validate_policy_params

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Define when and how often a request is retried.

    The policy is an immutable value: use ``merge`` to derive a policy
    with some parameters overridden.

    Args:
        status_forcelist: HTTP status codes that trigger a retry. Any
            iterable of ints is accepted and stored as a frozenset.
        max_attempts: Maximum number of attempts, including the initial
            one. Must be >= 1.
        backoff: Backoff strategy, or a plain function mapping the
            0-indexed retry number to a delay in seconds.
        jitter_factor: Factor for adding random jitter to backoff delays.
            The jitter ``random.uniform(0, jitter_factor) * delay`` is
            added to each delay. Must be >= 0.

    Example:
        ```pycon
        >>> from retransport import RetryPolicy
        >>> policy = RetryPolicy()
        >>> policy.max_attempts
        10
        >>> policy.is_retryable(503)
        True
        >>> policy.is_retryable(500)
        False
        >>> policy.merge(max_attempts=4).max_attempts
        4

        ```
    """

    status_forcelist: frozenset[int] = field(default_factory=lambda: frozenset(RETRY_STATUS_CODES))
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff: BaseBackoffStrategy | Callable[[int], float] = field(
        default_factory=ExponentialBackoff
    )
    jitter_factor: float = 0.0

    def __post_init__(self) -> None:
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "status_forcelist", _to_frozenset(self.status_forcelist))
        object.__setattr__(self, "backoff", to_backoff(self.backoff))
        validate_policy_params(
            max_attempts=self.max_attempts,
            jitter_factor=self.jitter_factor,
            status_forcelist=self.status_forcelist,
        )

    def is_retryable(self, status_code: int) -> bool:
        """Indicate if a response status code triggers a retry.

        Args:
            status_code: The HTTP status code of a response.

        Returns:
            ``True`` if the status code is in ``status_forcelist``.
        """
        return status_code in self.status_forcelist

    def has_attempts_left(self, attempt: int) -> bool:
        """Indicate if another attempt may follow attempt ``attempt``.

        Args:
            attempt: The 1-indexed attempt that just completed.

        Returns:
            ``True`` if ``attempt`` is lower than ``max_attempts``.
        """
        return attempt < self.max_attempts

    def backoff_delay(self, attempt: int) -> float:
        """Calculate the delay to wait after attempt ``attempt`` before
        the next one.

        Args:
            attempt: The 1-indexed attempt that just completed.

        Returns:
            The delay in seconds, including jitter.

        Example:
            ```pycon
            >>> from retransport import RetryPolicy
            >>> policy = RetryPolicy()
            >>> policy.backoff_delay(1)
            0.1
            >>> policy.backoff_delay(3)
            0.4

            ```
        """
        delay = self.backoff(attempt - 1)
        if self.jitter_factor > 0:
            jitter = random.uniform(0, self.jitter_factor) * delay  # noqa: S311
            logger.debug(f"Backoff after attempt {attempt}: {delay:.2f}s + {jitter:.2f}s jitter")
            return delay + jitter
        return delay

    def merge(self, **overrides: Any) -> RetryPolicy:
        """Create a new policy with the specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new RetryPolicy instance with overrides applied.

        Example:
            ```pycon
            >>> from retransport import RetryPolicy
            >>> policy = RetryPolicy(max_attempts=3)
            >>> policy.merge(max_attempts=5, jitter_factor=None).max_attempts
            5
            >>> policy.max_attempts  # Original unchanged
            3

            ```
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)


def _to_frozenset(status_codes: Iterable[int]) -> frozenset[int]:
    if isinstance(status_codes, int):
        msg = f"status_forcelist must be an iterable of ints, got {status_codes!r}"
        raise TypeError(msg)
    return frozenset(int(code) for code in status_codes)
