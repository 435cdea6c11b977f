# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Condition polling: convergence and stability checks over cluster observations.

Both checks share one loop, :func:`poll_until`, driven by a :class:`RetryPolicy`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
)

from kafka_scaler_e2e import logger
from kafka_scaler_e2e.errors import ObserveError


class ObserveErrorPolicy(str, Enum):
    """How a failed observation is charged against the attempt budget.

    Attributes:
        CONSUME: The failed evaluation counts as one attempt.
        RETRY: The evaluation is retried in place; it only counts as an
            attempt once its own error retries are exhausted.
    """

    CONSUME = "consume"
    RETRY = "retry"


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and spacing for one poll.

    Attributes:
        max_attempts: Maximum evaluations, including the first.
        interval: Seconds between evaluations (base delay when backing off).
        backoff: Multiplier applied per attempt; ``1.0`` keeps a fixed interval.
        max_interval: Upper bound for a backed-off delay, or None.
        deadline: Wall-clock cap in seconds across all attempts, or None.
    """

    max_attempts: int
    interval: float
    backoff: float = 1.0
    max_interval: float | None = None
    deadline: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")
        if self.backoff < 1:
            raise ValueError(f"backoff must be >= 1, got {self.backoff}")

    @property
    def budget(self) -> float:
        """Timeout budget of a fixed-interval poll in seconds."""
        return self.max_attempts * self.interval

    def wait_strategy(self):
        if self.backoff == 1.0:
            return wait_fixed(self.interval)
        return wait_exponential(
            multiplier=self.interval,
            exp_base=self.backoff,
            max=self.max_interval if self.max_interval is not None else float("inf"),
        )

    def stop_strategy(self):
        stop = stop_after_attempt(self.max_attempts)
        if self.deadline is not None:
            stop = stop | stop_after_delay(self.deadline)
        return stop


def _guard_observation(
    check: Callable[[], bool],
    interval: float,
    error_retries: int,
    sleep: Callable[[float], None],
) -> Callable[[], bool]:
    """Wrap *check* so ObserveErrors are retried without using an outer attempt."""
    inner = Retrying(
        stop=stop_after_attempt(error_retries + 1),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(ObserveError),
        sleep=sleep,
        reraise=True,
    )

    def _guarded() -> bool:
        return inner(check)

    return _guarded


def poll_until(
    check: Callable[[], bool],
    policy: RetryPolicy,
    *,
    on_error: ObserveErrorPolicy = ObserveErrorPolicy.CONSUME,
    error_retries: int = 0,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "condition",
) -> bool:
    """Evaluate *check* until it returns True or the policy is exhausted.

    The first evaluation happens immediately. No wait follows the final
    attempt. An ``ObserveError`` from *check* is never a match; other
    exceptions propagate.

    Args:
        check: Predicate evaluated once per attempt.
        policy: Attempt budget and spacing.
        on_error: Whether failed observations consume an attempt.
        error_retries: In-place retries per attempt under ``RETRY``.
        sleep: Sleep function, replaceable in tests.
        label: Name used in log messages.

    Returns:
        True if any evaluation returned True, False on exhaustion.
    """
    if on_error is ObserveErrorPolicy.RETRY and error_retries > 0:
        check = _guard_observation(check, policy.interval, error_retries, sleep)

    retryer = Retrying(
        stop=policy.stop_strategy(),
        wait=policy.wait_strategy(),
        retry=retry_if_result(lambda ok: not ok) | retry_if_exception_type(ObserveError),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        sleep=sleep,
    )
    try:
        return retryer(check)
    except RetryError as err:
        last = err.last_attempt
        if last.failed:
            logger.debug("%s: last observation failed: %s", label, last.exception())
        logger.info("%s: not met after %d attempts", label, last.attempt_number)
        return False


def wait_for_count(
    observe: Callable[[], int],
    target: int,
    policy: RetryPolicy,
    **kwargs,
) -> bool:
    """Poll *observe* until it returns *target*.

    Args:
        observe: Reads the current count (e.g. ready replicas).
        target: Expected count.
        policy: Attempt budget and spacing.
        **kwargs: Passed through to :func:`poll_until`.

    Returns:
        True once a reading equals *target*, False on exhaustion.
    """
    def _matches() -> bool:
        value = observe()
        logger.debug("observed %d, waiting for %d", value, target)
        return value == target

    kwargs.setdefault("label", f"wait for count {target}")
    return poll_until(_matches, policy, **kwargs)


def stability_policy(window: float, interval: float) -> RetryPolicy:
    """Sampling policy covering *window* seconds at *interval* spacing.

    One sample is taken at each end of the window, so ``window / interval``
    waits separate them.
    """
    attempts = round(window / interval) + 1 if interval > 0 else 1
    return RetryPolicy(max_attempts=attempts, interval=interval, deadline=window)


def assert_stable(
    observe: Callable[[], int],
    expected: int,
    window: float,
    interval: float,
    **kwargs,
) -> bool:
    """Sample *observe* across *window* and fail on the first deviation.

    Args:
        observe: Reads the current count.
        expected: Count that must hold for the whole window.
        window: Length of the stability window in seconds.
        interval: Seconds between samples.
        **kwargs: Passed through to :func:`poll_until`.

    Returns:
        True if at least one sample was read and every sample read
        equalled *expected*. False on a deviation or when no sample
        could be read at all.
    """
    samples: list[int] = []

    def _deviates() -> bool:
        value = observe()
        samples.append(value)
        return value != expected

    kwargs.setdefault("label", f"deviation from {expected}")
    if poll_until(_deviates, stability_policy(window, interval), **kwargs):
        logger.info("count changed to %d while expecting it to stay at %d", samples[-1], expected)
        return False
    if not samples:
        logger.info("no count could be read during the %gs window", window)
        return False
    return True
