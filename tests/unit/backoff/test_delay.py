from __future__ import annotations

from unittest.mock import patch

import pytest

from endpointkit.backoff import ConstantBackoff, ExponentialBackoff, compute_delay


def test_compute_delay_no_jitter() -> None:
    assert compute_delay(2, ExponentialBackoff()) == 4.0


def test_compute_delay_max_wait_time() -> None:
    assert compute_delay(4, ExponentialBackoff(), max_wait_time=3.0) == 3.0


def test_compute_delay_below_max_wait_time() -> None:
    assert compute_delay(0, ConstantBackoff(2.0), max_wait_time=3.0) == 2.0


def test_compute_delay_jitter() -> None:
    with patch("endpointkit.backoff.delay.random.uniform", return_value=0.5) as uniform:
        assert compute_delay(0, ConstantBackoff(2.0), jitter_factor=0.5) == 3.0
    uniform.assert_called_once_with(0, 0.5)


def test_compute_delay_jitter_applied_after_cap() -> None:
    with patch("endpointkit.backoff.delay.random.uniform", return_value=0.1):
        assert compute_delay(5, ExponentialBackoff(), jitter_factor=0.1, max_wait_time=10.0) == (
            pytest.approx(11.0)
        )


@pytest.mark.parametrize("retry", range(5))
def test_compute_delay_jitter_bounds(retry: int) -> None:
    delay = compute_delay(retry, ConstantBackoff(1.0), jitter_factor=0.2)
    assert 1.0 <= delay <= 1.2
