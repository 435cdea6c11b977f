from __future__ import annotations

import pytest

from kafka_scaler_e2e.errors import ObserveError
from kafka_scaler_e2e.poller import (
    ObserveErrorPolicy,
    RetryPolicy,
    assert_stable,
    poll_until,
    stability_policy,
    wait_for_count,
)


class Sequence:
    """Returns queued values in order; exceptions in the queue are raised."""

    def __init__(self, *values) -> None:
        self.values = list(values)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        value = self.values.pop(0) if len(self.values) > 1 else self.values[0]
        if isinstance(value, Exception):
            raise value
        return value


def test_immediate_success_does_not_sleep() -> None:
    sleeps: list[float] = []
    check = Sequence(True)

    assert poll_until(check, RetryPolicy(max_attempts=5, interval=2), sleep=sleeps.append)
    assert check.calls == 1
    assert sleeps == []


def test_exhaustion_uses_every_attempt_and_skips_the_last_wait() -> None:
    sleeps: list[float] = []
    check = Sequence(False)

    assert not poll_until(check, RetryPolicy(max_attempts=4, interval=2), sleep=sleeps.append)
    assert check.calls == 4
    assert sleeps == [2, 2, 2]


def test_success_on_a_later_attempt() -> None:
    sleeps: list[float] = []
    check = Sequence(False, False, True)

    assert poll_until(check, RetryPolicy(max_attempts=10, interval=1), sleep=sleeps.append)
    assert check.calls == 3
    assert sleeps == [1, 1]


def test_observe_error_consumes_an_attempt_by_default() -> None:
    sleeps: list[float] = []
    check = Sequence(ObserveError("read failed"), ObserveError("read failed"), True)

    assert poll_until(check, RetryPolicy(max_attempts=3, interval=1), sleep=sleeps.append)
    assert check.calls == 3

    failing = Sequence(ObserveError("read failed"))
    assert not poll_until(failing, RetryPolicy(max_attempts=3, interval=1), sleep=sleeps.append)
    assert failing.calls == 3


def test_observe_error_retried_in_place_under_retry_policy() -> None:
    sleeps: list[float] = []
    check = Sequence(ObserveError("read failed"), ObserveError("read failed"), True)

    ok = poll_until(
        check,
        RetryPolicy(max_attempts=1, interval=1),
        on_error=ObserveErrorPolicy.RETRY,
        error_retries=2,
        sleep=sleeps.append,
    )

    assert ok
    assert check.calls == 3


def test_retry_policy_charges_an_attempt_once_error_retries_run_out() -> None:
    check = Sequence(ObserveError("read failed"))

    ok = poll_until(
        check,
        RetryPolicy(max_attempts=2, interval=1),
        on_error=ObserveErrorPolicy.RETRY,
        error_retries=1,
        sleep=lambda _: None,
    )

    assert not ok
    assert check.calls == 4


def test_unexpected_exceptions_propagate() -> None:
    check = Sequence(False, ValueError("bad json"))

    with pytest.raises(ValueError, match="bad json"):
        poll_until(check, RetryPolicy(max_attempts=5, interval=1), sleep=lambda _: None)
    assert check.calls == 2


def test_exponential_backoff_with_cap() -> None:
    sleeps: list[float] = []
    policy = RetryPolicy(max_attempts=4, interval=1, backoff=2)

    poll_until(Sequence(False), policy, sleep=sleeps.append)
    assert sleeps == [1, 2, 4]

    sleeps.clear()
    capped = RetryPolicy(max_attempts=4, interval=1, backoff=2, max_interval=3)
    poll_until(Sequence(False), capped, sleep=sleeps.append)
    assert sleeps == [1, 2, 3]


def test_wait_for_count_matches_target() -> None:
    observe = Sequence(0, 1, 2)

    assert wait_for_count(observe, 2, RetryPolicy(max_attempts=5, interval=1), sleep=lambda _: None)
    assert observe.calls == 3


def test_wait_for_count_exhausts_when_target_never_seen() -> None:
    observe = Sequence(1)

    assert not wait_for_count(observe, 3, RetryPolicy(max_attempts=6, interval=1), sleep=lambda _: None)
    assert observe.calls == 6


def test_assert_stable_holds_for_the_whole_window() -> None:
    sleeps: list[float] = []
    observe = Sequence(0)

    assert assert_stable(observe, 0, window=5, interval=1, sleep=sleeps.append)
    # samples at both ends of the window
    assert observe.calls == 6
    assert sum(sleeps) == 5


def test_assert_stable_fails_at_first_deviation() -> None:
    observe = Sequence(0, 0, 0, 1, 0)

    assert not assert_stable(observe, 0, window=10, interval=1, sleep=lambda _: None)
    assert observe.calls == 4


def test_assert_stable_ignores_failed_reads() -> None:
    observe = Sequence(0, ObserveError("read failed"), 0)

    assert assert_stable(observe, 0, window=3, interval=1, sleep=lambda _: None)
    assert observe.calls == 4


def test_assert_stable_fails_when_no_sample_can_be_read() -> None:
    observe = Sequence(ObserveError("apiserver unavailable"))

    assert not assert_stable(observe, 0, window=60, interval=1, sleep=lambda _: None)
    assert observe.calls == 61


def test_assert_stable_needs_only_one_good_sample() -> None:
    observe = Sequence(ObserveError("read failed"), ObserveError("read failed"), 0, ObserveError("read failed"))

    assert assert_stable(observe, 0, window=3, interval=1, sleep=lambda _: None)
    assert observe.calls == 4


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0, "interval": 1},
        {"max_attempts": 1, "interval": -1},
        {"max_attempts": 1, "interval": 1, "backoff": 0.5},
    ],
)
def test_retry_policy_rejects_invalid_values(kwargs) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_retry_policy_budget() -> None:
    assert RetryPolicy(max_attempts=60, interval=2).budget == 120


def test_stability_policy_covers_window() -> None:
    policy = stability_policy(60, 1)

    assert policy.max_attempts == 61
    assert policy.interval == 1
    assert policy.deadline == 60
    assert stability_policy(0.5, 1).max_attempts == 1
    assert stability_policy(6, 2).max_attempts == 4
    assert stability_policy(10, 0).max_attempts == 1
