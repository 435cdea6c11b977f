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

"""Configuration classes and scenario parameter records."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from kafka_scaler_e2e import console
from kafka_scaler_e2e.constants import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_DRAIN_POLL_INTERVAL,
    DEFAULT_ENV_FILE,
    DEFAULT_OBSERVE_ERROR_RETRIES,
    DEFAULT_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_READY_TIMEOUT,
    DEFAULT_STABILITY_INTERVAL,
    DEFAULT_STABILITY_WINDOW,
    DEFAULT_STRIMZI_VERSION,
    DEFAULT_TEST_NAME,
    KAFKA_PORT,
    TOPIC_1,
    TOPIC_2,
)
from kafka_scaler_e2e.poller import ObserveErrorPolicy, RetryPolicy

ENV_FILE_VAR = "KAFKA_E2E_ENV_FILE"


# ============================================================================
# Configuration classes
# ============================================================================

class E2EConfig(BaseSettings):
    """Run configuration, auto-loaded from KAFKA_E2E_* env vars and the env file.

    Attributes:
        test_name: Prefix for every resource name the run creates.
        namespace_suffix: Appended to the test namespace to isolate runs.
        kube_context: kubeconfig context to use, or None for the current one.
        kubeconfig: Path to a kubeconfig file, or None for the default.
        strimzi_version: Strimzi Kafka operator Helm chart version.
        command_timeout: Deadline in seconds for each executed command.
        ready_timeout: Seconds to wait for base resources to become Ready.
        poll_attempts: Attempts for replica convergence polls.
        poll_interval: Seconds between convergence poll attempts.
        drain_poll_interval: Seconds between attempts while waiting for scale-in.
        stability_window: Length in seconds of a negative (no-change) assertion.
        stability_interval: Seconds between samples inside a stability window.
        observe_error_policy: Whether failed replica reads consume a poll attempt.
        observe_error_retries: In-place retries per attempt under the retry policy.
    """

    model_config = SettingsConfigDict(
        env_prefix="KAFKA_E2E_",
        env_file=DEFAULT_ENV_FILE,
        extra="ignore",
    )

    test_name: str = Field(default=DEFAULT_TEST_NAME, pattern=r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
    namespace_suffix: str = Field(default="", pattern=r"^[-a-z0-9]*$")
    kube_context: str | None = None
    kubeconfig: str | None = None
    strimzi_version: str = Field(default=DEFAULT_STRIMZI_VERSION, pattern=r"^\d+\.\d+\.\d+$")
    command_timeout: float = Field(default=DEFAULT_COMMAND_TIMEOUT, gt=0)
    ready_timeout: int = Field(default=DEFAULT_READY_TIMEOUT, ge=1)
    poll_attempts: int = Field(default=DEFAULT_POLL_ATTEMPTS, ge=1)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    drain_poll_interval: float = Field(default=DEFAULT_DRAIN_POLL_INTERVAL, gt=0)
    stability_window: float = Field(default=DEFAULT_STABILITY_WINDOW, gt=0)
    stability_interval: float = Field(default=DEFAULT_STABILITY_INTERVAL, gt=0)
    observe_error_policy: ObserveErrorPolicy = ObserveErrorPolicy.CONSUME
    observe_error_retries: int = Field(default=DEFAULT_OBSERVE_ERROR_RETRIES, ge=0)

    @property
    def namespace(self) -> str:
        return f"{self.test_name}-ns{self.namespace_suffix}"

    def kubectl_flags(self) -> list[str]:
        """Global kubectl flags selecting the target cluster."""
        flags: list[str] = []
        if self.kubeconfig:
            flags += ["--kubeconfig", self.kubeconfig]
        if self.kube_context:
            flags += ["--context", self.kube_context]
        return flags

    def helm_flags(self) -> list[str]:
        """Global helm flags selecting the target cluster."""
        flags: list[str] = []
        if self.kubeconfig:
            flags += ["--kubeconfig", self.kubeconfig]
        if self.kube_context:
            flags += ["--kube-context", self.kube_context]
        return flags

    def convergence_policy(self, interval: float | None = None) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.poll_attempts,
            interval=self.poll_interval if interval is None else interval,
        )


def load_config(env_file: str | None = None, **overrides: Any) -> E2EConfig:
    """Load the run configuration once, before setup.

    Args:
        env_file: Env file path; defaults to ``$KAFKA_E2E_ENV_FILE`` or ``.env``.
        **overrides: Field values taking precedence over the environment.

    Returns:
        The resolved configuration.
    """
    path = env_file or os.environ.get(ENV_FILE_VAR, DEFAULT_ENV_FILE)
    cfg = E2EConfig(_env_file=path)
    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        cfg = cfg.model_copy(update=updates)
    return cfg


def display_config(cfg: E2EConfig) -> None:
    """Print the resolved configuration."""
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  namespace          : {cfg.namespace}")
    console.print(f"  kube_context       : {cfg.kube_context or '(current)'}")
    console.print(f"  kubeconfig         : {cfg.kubeconfig or '(default)'}")
    console.print(f"  strimzi_version    : {cfg.strimzi_version}")
    console.print(f"  command_timeout    : {cfg.command_timeout:g}s")
    console.print(f"  poll               : {cfg.poll_attempts} x {cfg.poll_interval:g}s")
    console.print(f"  stability_window   : {cfg.stability_window:g}s every {cfg.stability_interval:g}s")
    console.print(f"  observe_errors     : {cfg.observe_error_policy.value}")


# ============================================================================
# Scenario parameters
# ============================================================================

@dataclass(frozen=True)
class ScenarioParameters:
    """Values substituted into resource templates.

    A base value is built once per run; each scenario derives its own copy
    with :meth:`with_overrides`, so no scenario sees another's settings.

    Attributes:
        test_namespace: Namespace every test resource lives in.
        deployment_name: Consumer Deployment scaled by the autoscaler.
        scaled_object_name: ScaledObject targeting the Deployment.
        kafka_name: Strimzi Kafka cluster name.
        kafka_client_name: Pod used to produce messages and commit offsets.
        bootstrap_server: Kafka bootstrap address inside the cluster.
        kafka_topic_name: Topic rendered by the KafkaTopic template.
        kafka_topic_partitions: Partitions rendered by the KafkaTopic template.
        topic_name: Topic a single-topic ScaledObject watches.
        topic1_name: First topic of the multi-topic consumer group.
        topic2_name: Second topic of the multi-topic consumer group.
        reset_policy: Consumer group name and offset reset policy.
        params: Extra kafka-console-consumer arguments.
        commit: Value of the consumer's ``enable.auto.commit`` property.
        scale_to_zero_on_invalid: Value of ``scaleToZeroOnInvalidOffset``.
    """

    test_namespace: str
    deployment_name: str
    scaled_object_name: str
    kafka_name: str
    kafka_client_name: str
    bootstrap_server: str
    kafka_topic_name: str = ""
    kafka_topic_partitions: int = 0
    topic_name: str = TOPIC_1
    topic1_name: str = TOPIC_1
    topic2_name: str = TOPIC_2
    reset_policy: str = ""
    params: str = ""
    commit: str = ""
    scale_to_zero_on_invalid: str = ""

    @classmethod
    def from_config(cls, cfg: E2EConfig) -> ScenarioParameters:
        namespace = cfg.namespace
        kafka_name = f"{cfg.test_name}-kafka"
        return cls(
            test_namespace=namespace,
            deployment_name=f"{cfg.test_name}-deployment",
            scaled_object_name=f"{cfg.test_name}-so",
            kafka_name=kafka_name,
            kafka_client_name=f"{cfg.test_name}-client",
            bootstrap_server=f"{kafka_name}-kafka-bootstrap.{namespace}:{KAFKA_PORT}",
        )

    def with_overrides(self, **fields: Any) -> ScenarioParameters:
        return dataclasses.replace(self, **fields)

    def as_context(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
