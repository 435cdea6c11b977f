"""Shared fixtures: configuration, a simulated cluster, and runner wiring."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field

import pytest
import yaml

from kafka_scaler_e2e.config import E2EConfig
from kafka_scaler_e2e.errors import CommandError
from kafka_scaler_e2e.executor import CommandResult
from kafka_scaler_e2e.resources import ResourceManager
from kafka_scaler_e2e.runner import ScenarioRunner

_TOPIC_RE = re.compile(r"--topic '?([\w.-]+)'?")
_GROUP_RE = re.compile(r"--group ([\w.-]+)")


@dataclass
class SimulatedCluster:
    """In-memory stand-in for kubectl, helm, and the Kafka client pod.

    Replica counts follow KEDA's Kafka scaler: lag per consumer group and
    topic, an activation threshold, a cap at the partition count, and the
    invalid-offset rules. The observed count moves one replica per read
    towards the desired count, so polls need more than one attempt.
    """

    autoscaler_enabled: bool = True
    reject_kinds: set[str] = field(default_factory=set)
    fail_local: set[str] = field(default_factory=set)
    fail_exec: set[str] = field(default_factory=set)
    fail_get: int = 0

    def __post_init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict] = {}
        self.namespaces: set[str] = set()
        self.produced: dict[str, int] = {}
        self.committed: dict[tuple[str, str], int] = {}
        self.partitions: dict[str, int] = {}
        self.replicas = 0
        self.replica_history: list[int] = []
        self.applied: list[tuple[str, str]] = []
        self.deleted: list[tuple[str, str]] = []
        self.local_commands: list[str] = []
        self.pod_commands: list[str] = []
        self.waits: list[str] = []
        self.events: list[str] = []

    # -- kubectl --------------------------------------------------------

    def kubectl(self, *args: str, stdin: str | None = None, timeout: float | None = None) -> str:
        verb = args[0]
        if verb == "apply":
            return self._apply(args[args.index("-n") + 1], yaml.safe_load(stdin))
        if verb == "delete" and args[1] == "namespace":
            self.namespaces.discard(args[2])
            self.objects = {key: doc for key, doc in self.objects.items() if key[0] != args[2]}
            return ""
        if verb == "delete":
            return self._delete(args[args.index("-n") + 1], yaml.safe_load(stdin))
        if verb == "create" and args[1] == "namespace":
            if args[2] in self.namespaces:
                raise CommandError("kubectl create namespace", 1, stderr="AlreadyExists")
            self.namespaces.add(args[2])
            return ""
        if verb == "wait":
            self.waits.append(args[1])
            return "condition met"
        if verb == "get" and args[1] == "deployment":
            return self._get_deployment(args[args.index("-n") + 1], args[2])
        raise AssertionError(f"unexpected kubectl call: {args}")

    def _apply(self, namespace: str, doc: dict) -> str:
        kind, name = doc["kind"], doc["metadata"]["name"]
        if kind in self.reject_kinds:
            raise CommandError("kubectl apply", 1, stderr=f"admission webhook denied {kind}")
        self.objects[(namespace, kind, name)] = doc
        self.applied.append((kind, name))
        self.events.append(f"apply {kind}")
        if kind == "KafkaTopic":
            self.partitions[name] = int(doc["spec"]["partitions"])
        return f"{kind.lower()}/{name} configured"

    def _delete(self, namespace: str, doc: dict) -> str:
        kind, name = doc["kind"], doc["metadata"]["name"]
        self.deleted.append((kind, name))
        self.objects.pop((namespace, kind, name), None)
        if kind == "Deployment":
            self.replicas = 0
        return ""

    def _find(self, namespace: str, kind: str) -> dict | None:
        for (ns, k, _), doc in self.objects.items():
            if ns == namespace and k == kind:
                return doc
        return None

    def _get_deployment(self, namespace: str, name: str) -> str:
        if self.fail_get > 0:
            self.fail_get -= 1
            raise CommandError("kubectl get deployment", 1, stderr="etcdserver: request timed out")
        deployment = self.objects.get((namespace, "Deployment", name))
        if deployment is None:
            raise CommandError("kubectl get deployment", 1, stderr="NotFound")
        if self.replicas > 0:
            self._consume(deployment)
        desired = self.desired_replicas(namespace) if self.autoscaler_enabled else self.replicas
        if desired > self.replicas:
            self.replicas += 1
        elif desired < self.replicas:
            self.replicas -= 1
        self.replica_history.append(self.replicas)
        status = {"replicas": self.replicas}
        if self.replicas:
            status["readyReplicas"] = self.replicas
        return json.dumps({"metadata": {"name": name}, "status": status})

    def _consume(self, deployment: dict) -> None:
        for container in deployment["spec"]["template"]["spec"]["containers"]:
            command = container["command"][-1]
            if "enable.auto.commit=true" not in command:
                continue
            topic, group = _TOPIC_RE.search(command).group(1), _GROUP_RE.search(command).group(1)
            if (group, topic) in self.committed:
                self.committed[(group, topic)] = self.produced.get(topic, 0)

    def desired_replicas(self, namespace: str) -> int:
        scaled_object = self._find(namespace, "ScaledObject")
        if scaled_object is None:
            return 0
        meta = scaled_object["spec"]["triggers"][0]["metadata"]
        group = meta["consumerGroup"]
        threshold = int(meta["lagThreshold"])
        activation = int(meta.get("activationLagThreshold", 0))
        reset_policy = meta.get("offsetResetPolicy", "latest")
        zero_on_invalid = str(meta.get("scaleToZeroOnInvalidOffset", "false")) == "true"
        topic = meta.get("topic")
        topics = [topic] if topic else sorted({t for g, t in self.committed if g == group})

        lag = 0
        partitions = 0
        for name in topics:
            partitions += self.partitions.get(name, 1)
            offset = self.committed.get((group, name))
            if offset is not None:
                lag += self.produced.get(name, 0) - offset
            elif reset_policy == "earliest":
                lag += self.produced.get(name, 0)
            elif not zero_on_invalid:
                lag += 1
        if lag <= activation:
            return 0
        return min(math.ceil(lag / threshold), partitions)

    # -- command channel ------------------------------------------------

    def exec(self, pod: str, namespace: str, command: str, timeout: float | None = None) -> CommandResult:
        self.pod_commands.append(command)
        for marker in self.fail_exec:
            if marker in command:
                raise CommandError(command, 1, stderr="connection refused")
        topic = _TOPIC_RE.search(command).group(1)
        if "kafka-console-producer" in command:
            self.produced[topic] = self.produced.get(topic, 0) + 1
            self.events.append("publish")
        elif "kafka-console-consumer" in command:
            group = _GROUP_RE.search(command).group(1)
            self.committed[(group, topic)] = self.produced.get(topic, 0)
            self.events.append("commit")
        return CommandResult(command)

    def exec_local(self, command: str, timeout: float | None = None) -> str:
        self.local_commands.append(command)
        for marker in self.fail_local:
            if marker in command:
                raise CommandError(command, 1, stderr="Error: INSTALLATION FAILED")
        return ""


@pytest.fixture
def cfg() -> E2EConfig:
    return E2EConfig(
        _env_file=None,
        test_name="kafka-test",
        namespace_suffix="",
        poll_attempts=10,
        poll_interval=2,
        drain_poll_interval=10,
        stability_window=5,
        stability_interval=1,
    )


@pytest.fixture
def cluster() -> SimulatedCluster:
    return SimulatedCluster()


@pytest.fixture
def resources(cluster: SimulatedCluster) -> ResourceManager:
    return ResourceManager(cluster.kubectl)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_runner(cfg, cluster, resources, sleeps, monkeypatch):
    monkeypatch.setattr("kafka_scaler_e2e.runner.require_command", lambda cmd: None)

    def _make(scenarios=None, **kwargs) -> ScenarioRunner:
        return ScenarioRunner(cfg, resources, cluster, scenarios, sleep=sleeps.append, **kwargs)

    return _make
