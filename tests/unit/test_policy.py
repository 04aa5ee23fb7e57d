from __future__ import annotations

from unittest.mock import patch

import pytest
from coola.equality import objects_are_equal

from retransport import RetryPolicy
from retransport.backoff import ConstantBackoff, ExponentialBackoff, FunctionBackoff
from retransport.config import DEFAULT_MAX_ATTEMPTS, RETRY_STATUS_CODES


def test_retry_policy_defaults() -> None:
    policy = RetryPolicy()
    assert policy.status_forcelist == frozenset({408, 502, 503, 504})
    assert policy.max_attempts == DEFAULT_MAX_ATTEMPTS
    assert policy.max_attempts >= 4
    assert policy.backoff == ExponentialBackoff(base_delay=0.1, max_delay=1.0)
    assert policy.jitter_factor == 0.0


def test_retry_policy_status_forcelist_normalized() -> None:
    policy = RetryPolicy(status_forcelist=[503, 429, 503])
    assert isinstance(policy.status_forcelist, frozenset)
    assert policy.status_forcelist == frozenset({429, 503})


def test_retry_policy_status_forcelist_int() -> None:
    with pytest.raises(TypeError, match=r"status_forcelist must be an iterable of ints"):
        RetryPolicy(status_forcelist=503)


def test_retry_policy_status_forcelist_invalid_code() -> None:
    with pytest.raises(ValueError, match=r"status_forcelist must only contain HTTP status codes"):
        RetryPolicy(status_forcelist=(503, 1000))


@pytest.mark.parametrize("max_attempts", [0, -1])
def test_retry_policy_invalid_max_attempts(max_attempts: int) -> None:
    with pytest.raises(ValueError, match=r"max_attempts must be >= 1"):
        RetryPolicy(max_attempts=max_attempts)


def test_retry_policy_invalid_jitter_factor() -> None:
    with pytest.raises(ValueError, match=r"jitter_factor must be >= 0"):
        RetryPolicy(jitter_factor=-0.1)


def test_retry_policy_invalid_backoff() -> None:
    with pytest.raises(TypeError, match=r"backoff must be a BaseBackoffStrategy or a callable"):
        RetryPolicy(backoff=1.0)


def test_retry_policy_is_frozen() -> None:
    policy = RetryPolicy()
    with pytest.raises(AttributeError):
        policy.max_attempts = 3


def test_retry_policy_equal() -> None:
    assert RetryPolicy(max_attempts=4) == RetryPolicy(max_attempts=4)
    assert RetryPolicy(max_attempts=4) != RetryPolicy(max_attempts=5)
    assert hash(RetryPolicy()) == hash(RetryPolicy())


@pytest.mark.parametrize("status_code", RETRY_STATUS_CODES)
def test_retry_policy_is_retryable_true(status_code: int) -> None:
    assert RetryPolicy().is_retryable(status_code)


@pytest.mark.parametrize("status_code", [200, 201, 400, 404, 429, 500, 501])
def test_retry_policy_is_retryable_false(status_code: int) -> None:
    assert not RetryPolicy().is_retryable(status_code)


def test_retry_policy_has_attempts_left() -> None:
    policy = RetryPolicy(max_attempts=3)
    assert policy.has_attempts_left(1)
    assert policy.has_attempts_left(2)
    assert not policy.has_attempts_left(3)


def test_retry_policy_backoff_delay_default() -> None:
    policy = RetryPolicy()
    delays = [policy.backoff_delay(attempt) for attempt in range(1, 10)]
    assert objects_are_equal(delays, [0.1, 0.2, 0.4, 0.8, 1.0, 1.0, 1.0, 1.0, 1.0])


def test_retry_policy_backoff_function() -> None:
    policy = RetryPolicy(backoff=lambda retry_index: 0.5 * (retry_index + 1))
    assert isinstance(policy.backoff, FunctionBackoff)
    assert policy.backoff_delay(1) == 0.5
    assert policy.backoff_delay(4) == 2.0


def test_retry_policy_backoff_delay_with_jitter() -> None:
    policy = RetryPolicy(backoff=ConstantBackoff(delay=1.0), jitter_factor=0.5)
    for attempt in range(1, 5):
        assert 1.0 <= policy.backoff_delay(attempt) <= 1.5


def test_retry_policy_backoff_delay_jitter_uses_random() -> None:
    policy = RetryPolicy(backoff=ConstantBackoff(delay=2.0), jitter_factor=0.1)
    with patch("retransport.policy.random.uniform", return_value=0.05) as mock_uniform:
        assert policy.backoff_delay(1) == pytest.approx(2.1)
    mock_uniform.assert_called_once_with(0, 0.1)


def test_retry_policy_merge() -> None:
    policy = RetryPolicy(max_attempts=3)
    merged = policy.merge(max_attempts=5, jitter_factor=None)
    assert merged.max_attempts == 5
    assert merged.jitter_factor == 0.0
    assert policy.max_attempts == 3


def test_retry_policy_merge_validates() -> None:
    with pytest.raises(ValueError, match=r"max_attempts must be >= 1"):
        RetryPolicy().merge(max_attempts=0)
