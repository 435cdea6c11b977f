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

"""Strimzi operator installation, Kafka cluster and topics, and client commands."""

from __future__ import annotations

from rich.panel import Panel

from kafka_scaler_e2e import console
from kafka_scaler_e2e.config import E2EConfig, ScenarioParameters
from kafka_scaler_e2e.constants import (
    COMMIT_TIMEOUT_MS,
    CONDITION_READY,
    HELM_CHART_STRIMZI,
    HELM_REPO_STRIMZI,
    HELM_REPO_STRIMZI_URL,
    KAFKA_MESSAGE,
    KIND_KAFKA,
    KIND_KAFKA_TOPIC,
)
from kafka_scaler_e2e.errors import CommandError, SetupError
from kafka_scaler_e2e.executor import CommandChannel
from kafka_scaler_e2e.manifests import KAFKA_CLUSTER, KAFKA_TOPIC
from kafka_scaler_e2e.resources import ResourceManager
from kafka_scaler_e2e.templates import render
from kafka_scaler_e2e.utils import join_command


# ============================================================================
# Strimzi operator
# ============================================================================

def install_kafka_operator(channel: CommandChannel, cfg: E2EConfig) -> None:
    """Install the Strimzi Kafka operator into the test namespace via Helm.

    Raises:
        SetupError: If any helm command fails.
    """
    console.print(Panel.fit("Installing Strimzi Kafka operator", style="bold blue"))
    console.print(f"[yellow]Version: {cfg.strimzi_version}[/yellow]")
    helm_flags = cfg.helm_flags()
    commands = [
        join_command("helm", "repo", "add", HELM_REPO_STRIMZI, HELM_REPO_STRIMZI_URL, "--force-update"),
        join_command("helm", "repo", "update"),
        join_command(
            "helm", *helm_flags,
            "upgrade", "--install",
            "--namespace", cfg.namespace,
            "--wait",
            cfg.test_name, HELM_CHART_STRIMZI,
            "--version", cfg.strimzi_version,
        ),
    ]
    try:
        for command in commands:
            channel.exec_local(command)
    except CommandError as err:
        raise SetupError(f"Failed to install Strimzi operator: {err}") from err
    console.print("[green]✅ Strimzi operator installed[/green]")


def uninstall_kafka_operator(channel: CommandChannel, cfg: E2EConfig) -> None:
    """Uninstall the Strimzi Helm release.

    Raises:
        CommandError: If helm fails.
    """
    console.print("[yellow]ℹ️  Uninstalling Strimzi operator...[/yellow]")
    channel.exec_local(join_command("helm", *cfg.helm_flags(), "uninstall", "--namespace", cfg.namespace, cfg.test_name))
    console.print("[green]✅ Strimzi operator uninstalled[/green]")


# ============================================================================
# Kafka cluster and topics
# ============================================================================

def add_cluster(resources: ResourceManager, params: ScenarioParameters, timeout: int) -> None:
    """Create the Kafka cluster and wait for it to be Ready."""
    console.print(Panel.fit(f"Creating Kafka cluster {params.kafka_name}", style="bold blue"))
    resources.apply(params.test_namespace, render(KAFKA_CLUSTER, params))
    resources.wait_for_condition(KIND_KAFKA, params.kafka_name, CONDITION_READY, timeout, params.test_namespace)


def add_topic(
    resources: ResourceManager,
    params: ScenarioParameters,
    name: str,
    partitions: int,
    timeout: int,
) -> None:
    """Create topic *name* with *partitions* partitions and wait for it to be Ready."""
    topic_params = params.with_overrides(kafka_topic_name=name, kafka_topic_partitions=partitions)
    resources.apply(params.test_namespace, render(KAFKA_TOPIC, topic_params))
    resources.wait_for_condition(KIND_KAFKA_TOPIC, name, CONDITION_READY, timeout, params.test_namespace)


# ============================================================================
# Client pod commands
# ============================================================================

def publish_command(bootstrap_server: str, topic: str) -> str:
    return (
        f"echo '{KAFKA_MESSAGE}' | "
        + join_command("kafka-console-producer", "--broker-list", bootstrap_server, "--topic", topic)
    )


def commit_command(bootstrap_server: str, topic: str, group: str) -> str:
    return join_command(
        "kafka-console-consumer",
        "--bootstrap-server", bootstrap_server,
        "--topic", topic,
        "--group", group,
        "--from-beginning",
        "--consumer-property", "enable.auto.commit=true",
        "--timeout-ms", str(COMMIT_TIMEOUT_MS),
    )


def publish_message(channel: CommandChannel, params: ScenarioParameters, topic: str) -> None:
    """Produce one message to *topic* from the client pod."""
    channel.exec(params.kafka_client_name, params.test_namespace, publish_command(params.bootstrap_server, topic))


def commit_partition(channel: CommandChannel, params: ScenarioParameters, topic: str, group: str) -> None:
    """Consume *topic* from the beginning as *group* and commit its offsets.

    The consumer exits on its own after ``COMMIT_TIMEOUT_MS`` without messages.
    """
    channel.exec(params.kafka_client_name, params.test_namespace, commit_command(params.bootstrap_server, topic, group))
