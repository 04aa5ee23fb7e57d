r"""Abstract base class for backoff strategies and helpers to adapt plain
functions."""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy", "FunctionBackoff", "to_backoff"]

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class BaseBackoffStrategy(ABC):
    """Abstract base class for backoff strategies.

    A backoff strategy determines how long to wait before the next
    attempt. Strategies are callables, so they can be used wherever a
    plain ``retry_index -> seconds`` function is accepted.
    """

    def __call__(self, retry_index: int) -> float:
        return self.calculate(retry_index)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(vars(self).items()))))

    @abstractmethod
    def calculate(self, retry_index: int) -> float:
        """Calculate the backoff delay before a retry.

        Args:
            retry_index: The 0-indexed retry number. For example,
                ``retry_index=0`` is the wait before the second attempt,
                ``retry_index=1`` the wait before the third attempt, etc.

        Returns:
            The delay in seconds.
        """


class FunctionBackoff(BaseBackoffStrategy):
    """Backoff strategy delegating to a plain function.

    Args:
        func: A function mapping the 0-indexed retry number to a delay
            in seconds.

    Example:
        ```pycon
        >>> from retransport.backoff import FunctionBackoff
        >>> backoff = FunctionBackoff(lambda retry_index: 0.5 * retry_index)
        >>> backoff.calculate(4)
        2.0

        ```
    """

    def __init__(self, func: Callable[[int], float]) -> None:
        self.func = func

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(func={self.func!r})"

    def calculate(self, retry_index: int) -> float:
        delay = float(self.func(retry_index))
        if delay < 0:
            msg = f"backoff delay must be non-negative, got {delay}"
            raise ValueError(msg)
        return delay


def to_backoff(backoff: BaseBackoffStrategy | Callable[[int], float]) -> BaseBackoffStrategy:
    r"""Return a backoff strategy for a strategy or a plain function.

    Args:
        backoff: A backoff strategy, or a function mapping the 0-indexed
            retry number to a delay in seconds.

    Returns:
        The strategy itself, or the function wrapped in a
            ``FunctionBackoff``.

    Raises:
        TypeError: If ``backoff`` is not callable.

    Example:
        ```pycon
        >>> from retransport.backoff import ConstantBackoff, to_backoff
        >>> backoff = ConstantBackoff(delay=1.0)
        >>> to_backoff(backoff) is backoff
        True
        >>> to_backoff(lambda retry_index: 2.0).calculate(0)
        2.0

        ```
    """
    if isinstance(backoff, BaseBackoffStrategy):
        return backoff
    if not callable(backoff):
        msg = f"backoff must be a BaseBackoffStrategy or a callable, got {backoff!r}"
        raise TypeError(msg)
    return FunctionBackoff(backoff)
