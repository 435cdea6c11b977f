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

"""Scaling scenarios and the context their steps run in.

Every ScaledObject uses ``lagThreshold: 1``, so the expected replica count is
the consumer-group lag, capped by the topic's partition count. The
single-topic triggers add ``activationLagThreshold: 1``: a lag of 1 keeps the
Deployment at zero.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from kafka_scaler_e2e import console, logger
from kafka_scaler_e2e.config import E2EConfig, ScenarioParameters
from kafka_scaler_e2e.constants import (
    FALSE_STRING,
    GROUP_EARLIEST,
    GROUP_INVALID_OFFSET,
    GROUP_LATEST,
    GROUP_MULTI_TOPIC,
    TOPIC_1,
    TOPIC_2,
    TOPIC_ONE_INVALID_OFFSET,
    TOPIC_PARTITIONS,
    TOPIC_ZERO_INVALID_OFFSET,
    TRUE_STRING,
)
from kafka_scaler_e2e.executor import CommandChannel
from kafka_scaler_e2e.kafka import commit_partition, publish_message
from kafka_scaler_e2e.manifests import (
    INVALID_OFFSET_SCALED_OBJECT,
    MULTI_DEPLOYMENT,
    MULTI_SCALED_OBJECT,
    SINGLE_DEPLOYMENT,
    SINGLE_SCALED_OBJECT,
)
from kafka_scaler_e2e.poller import assert_stable, wait_for_count
from kafka_scaler_e2e.resources import ResourceManager
from kafka_scaler_e2e.templates import ResourceTemplate


class ScenarioContext:
    """Parameters and cluster handles for one scenario's steps.

    Failed polls are recorded in :attr:`failures` rather than raised, so the
    remaining steps still run.
    """

    def __init__(
        self,
        params: ScenarioParameters,
        cfg: E2EConfig,
        resources: ResourceManager,
        channel: CommandChannel,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.params = params
        self.cfg = cfg
        self.resources = resources
        self.channel = channel
        self.sleep = sleep
        self.failures: list[str] = []

    def _poll_options(self) -> dict[str, Any]:
        return {
            "on_error": self.cfg.observe_error_policy,
            "error_retries": self.cfg.observe_error_retries,
            "sleep": self.sleep,
        }

    def publish(self, topic: str, count: int = 1) -> None:
        for _ in range(count):
            publish_message(self.channel, self.params, topic)
        logger.info("published %d message(s) to %s", count, topic)

    def commit(self, topic: str, group: str) -> None:
        commit_partition(self.channel, self.params, topic, group)
        logger.info("committed offsets of %s for group %s", topic, group)

    def ready_replicas(self) -> int:
        return self.resources.deployment_replicas(self.params.deployment_name, self.params.test_namespace)

    def replicas(self) -> int:
        return self.resources.deployment_replicas(
            self.params.deployment_name, self.params.test_namespace, ready=False,
        )

    def expect_replicas(self, target: int, interval: float | None = None) -> bool:
        """Wait for the Deployment to report *target* ready replicas."""
        policy = self.cfg.convergence_policy(interval)
        console.print(f"[yellow]ℹ️  Waiting for {target} ready replica(s) (up to {policy.budget:g}s)...[/yellow]")
        ok = wait_for_count(self.ready_replicas, target, policy, **self._poll_options())
        if ok:
            console.print(f"[green]  ✓ {target} replica(s)[/green]")
        else:
            self.fail(f"replica count should be {target} after {policy.budget:g}s")
        return ok

    def expect_stable(self, expected: int) -> bool:
        """Require the replica count to stay at *expected* for the stability window."""
        window = self.cfg.stability_window
        console.print(f"[yellow]ℹ️  Checking replicas stay at {expected} for {window:g}s...[/yellow]")
        ok = assert_stable(self.replicas, expected, window, self.cfg.stability_interval, **self._poll_options())
        if ok:
            console.print(f"[green]  ✓ stayed at {expected}[/green]")
        else:
            self.fail(f"replica count should stay at {expected} for {window:g}s")
        return ok

    def fail(self, message: str) -> None:
        console.print(f"[red]  ✗ {message}[/red]")
        self.failures.append(message)


@dataclass(frozen=True)
class Scenario:
    """A named scaling test.

    Attributes:
        name: Identifier used on the command line and in reports.
        description: One-line summary.
        templates: Resources applied before ``steps`` and deleted after.
        steps: Workload commands and assertions, run after the apply.
        overrides: Parameter fields set on top of the base parameters.
        prepare: Commands that must run before the apply, or None.
    """

    name: str
    description: str
    templates: tuple[ResourceTemplate, ...]
    steps: Callable[[ScenarioContext], None]
    overrides: Mapping[str, Any] = field(default_factory=dict)
    prepare: Callable[[ScenarioContext], None] | None = None

    def parameters(self, base: ScenarioParameters) -> ScenarioParameters:
        return base.with_overrides(**self.overrides)


# ============================================================================
# Steps
# ============================================================================

def _scale_up_to_partition_cap(ctx: ScenarioContext) -> None:
    topic = ctx.params.topic_name
    # no lag yet
    ctx.expect_stable(0)
    # lag 1 is below the activation threshold
    ctx.publish(topic)
    ctx.expect_stable(0)
    ctx.publish(topic)
    ctx.expect_replicas(2)
    # lag exceeds the partition count; replicas are capped at it
    ctx.publish(topic, count=5)
    ctx.expect_replicas(TOPIC_PARTITIONS)


def _commit_latest(ctx: ScenarioContext) -> None:
    ctx.commit(TOPIC_1, GROUP_LATEST)


def _commit_multi_topic(ctx: ScenarioContext) -> None:
    ctx.commit(TOPIC_1, GROUP_MULTI_TOPIC)
    ctx.commit(TOPIC_2, GROUP_MULTI_TOPIC)


def _multi_topic_lag_adds_up(ctx: ScenarioContext) -> None:
    ctx.expect_stable(0)
    ctx.publish(ctx.params.topic1_name)
    ctx.expect_replicas(1)
    # one more message on the other topic of the same group: total lag 2
    ctx.publish(ctx.params.topic2_name)
    ctx.expect_replicas(2)


def _hold_zero_on_invalid_offset(ctx: ScenarioContext) -> None:
    ctx.expect_stable(0)


def _one_on_invalid_offset_then_drain(ctx: ScenarioContext) -> None:
    ctx.expect_replicas(1)
    ctx.commit(ctx.params.topic_name, GROUP_INVALID_OFFSET)
    ctx.publish(ctx.params.topic_name)
    # the running consumer commits the message and the lag drops back to 0
    ctx.expect_replicas(0, interval=ctx.cfg.drain_poll_interval)


# ============================================================================
# Scenario table
# ============================================================================

SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        name="earliest-policy",
        description="earliest reset policy: activation floor, scale to 2, cap at partitions",
        templates=(SINGLE_DEPLOYMENT, SINGLE_SCALED_OBJECT),
        steps=_scale_up_to_partition_cap,
        overrides={
            "params": f"--topic {TOPIC_1} --group {GROUP_EARLIEST} --from-beginning",
            "commit": FALSE_STRING,
            "topic_name": TOPIC_1,
            "reset_policy": GROUP_EARLIEST,
        },
    ),
    Scenario(
        name="latest-policy",
        description="latest reset policy: activation floor, scale to 2, cap at partitions",
        templates=(SINGLE_DEPLOYMENT, SINGLE_SCALED_OBJECT),
        steps=_scale_up_to_partition_cap,
        prepare=_commit_latest,
        overrides={
            "params": f"--topic {TOPIC_1} --group {GROUP_LATEST}",
            "commit": FALSE_STRING,
            "topic_name": TOPIC_1,
            "reset_policy": GROUP_LATEST,
        },
    ),
    Scenario(
        name="multi-topic",
        description="one consumer group over two topics: lag adds up across topics",
        templates=(MULTI_DEPLOYMENT, MULTI_SCALED_OBJECT),
        steps=_multi_topic_lag_adds_up,
        prepare=_commit_multi_topic,
        overrides={
            "topic1_name": TOPIC_1,
            "topic2_name": TOPIC_2,
        },
    ),
    Scenario(
        name="zero-on-invalid-offset",
        description="scaleToZeroOnInvalidOffset=true holds zero replicas",
        templates=(SINGLE_DEPLOYMENT, INVALID_OFFSET_SCALED_OBJECT),
        steps=_hold_zero_on_invalid_offset,
        overrides={
            "params": f"--topic {TOPIC_ZERO_INVALID_OFFSET} --group {GROUP_INVALID_OFFSET}",
            "commit": TRUE_STRING,
            "topic_name": TOPIC_ZERO_INVALID_OFFSET,
            "reset_policy": GROUP_INVALID_OFFSET,
            "scale_to_zero_on_invalid": TRUE_STRING,
        },
    ),
    Scenario(
        name="one-on-invalid-offset",
        description="scaleToZeroOnInvalidOffset=false scales to one, then back to zero once consumed",
        templates=(SINGLE_DEPLOYMENT, INVALID_OFFSET_SCALED_OBJECT),
        steps=_one_on_invalid_offset_then_drain,
        overrides={
            "params": f"--topic {TOPIC_ONE_INVALID_OFFSET} --group {GROUP_INVALID_OFFSET} --from-beginning",
            "commit": TRUE_STRING,
            "topic_name": TOPIC_ONE_INVALID_OFFSET,
            "reset_policy": GROUP_INVALID_OFFSET,
            "scale_to_zero_on_invalid": FALSE_STRING,
        },
    ),
)


def select_scenarios(names: Iterable[str] | None = None) -> list[Scenario]:
    """Return the scenarios named in *names*, in table order; all when empty.

    Raises:
        ValueError: If a name is unknown.
    """
    wanted = list(names or [])
    if not wanted:
        return list(SCENARIOS)
    known = {scenario.name for scenario in SCENARIOS}
    unknown = [name for name in wanted if name not in known]
    if unknown:
        raise ValueError(f"Unknown scenario(s): {', '.join(unknown)}. Known: {', '.join(sorted(known))}")
    return [scenario for scenario in SCENARIOS if scenario.name in wanted]
