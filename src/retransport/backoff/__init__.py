r"""Backoff schedules mapping a retry index to the delay to wait before
the next attempt."""

from __future__ import annotations

__all__ = [
    "BaseBackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "FunctionBackoff",
    "to_backoff",
]

from retransport.backoff.base import BaseBackoffStrategy, FunctionBackoff, to_backoff
from retransport.backoff.constant import ConstantBackoff
from retransport.backoff.exponential import ExponentialBackoff
