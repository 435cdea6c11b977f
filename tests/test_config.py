from __future__ import annotations

import pytest
from pydantic import ValidationError

from kafka_scaler_e2e.config import E2EConfig, ScenarioParameters, load_config
from kafka_scaler_e2e.poller import ObserveErrorPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ("KAFKA_E2E_ENV_FILE", "KAFKA_E2E_NAMESPACE_SUFFIX", "KAFKA_E2E_POLL_ATTEMPTS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    cfg = load_config()

    assert cfg.namespace == "kafka-test-ns"
    assert cfg.poll_attempts == 60
    assert cfg.poll_interval == 2
    assert cfg.observe_error_policy is ObserveErrorPolicy.CONSUME
    assert cfg.kubectl_flags() == []
    assert cfg.convergence_policy().budget == 120


def test_env_vars_use_prefix(monkeypatch) -> None:
    monkeypatch.setenv("KAFKA_E2E_NAMESPACE_SUFFIX", "-pr42")
    monkeypatch.setenv("KAFKA_E2E_POLL_ATTEMPTS", "5")
    monkeypatch.setenv("KAFKA_E2E_OBSERVE_ERROR_POLICY", "retry")

    cfg = load_config()

    assert cfg.namespace == "kafka-test-ns-pr42"
    assert cfg.poll_attempts == 5
    assert cfg.observe_error_policy is ObserveErrorPolicy.RETRY


def test_env_file_and_overrides(tmp_path) -> None:
    env_file = tmp_path / "e2e.env"
    env_file.write_text("KAFKA_E2E_KUBE_CONTEXT=kind-e2e\nKAFKA_E2E_NAMESPACE_SUFFIX=-file\n")

    cfg = load_config(str(env_file), namespace_suffix="-cli", kubeconfig=None)

    assert cfg.kube_context == "kind-e2e"
    assert cfg.namespace == "kafka-test-ns-cli"
    assert cfg.kubectl_flags() == ["--context", "kind-e2e"]
    assert cfg.helm_flags() == ["--kube-context", "kind-e2e"]


def test_env_file_from_variable(monkeypatch, tmp_path) -> None:
    env_file = tmp_path / "ci.env"
    env_file.write_text("KAFKA_E2E_STABILITY_WINDOW=30\n")
    monkeypatch.setenv("KAFKA_E2E_ENV_FILE", str(env_file))

    assert load_config().stability_window == 30


def test_kubeconfig_flag_comes_first() -> None:
    cfg = E2EConfig(_env_file=None, kubeconfig="/tmp/kc", kube_context="ctx")

    assert cfg.kubectl_flags() == ["--kubeconfig", "/tmp/kc", "--context", "ctx"]


@pytest.mark.parametrize(
    "field",
    [{"poll_attempts": 0}, {"poll_interval": 0}, {"test_name": "Bad_Name"}, {"strimzi_version": "latest"}],
)
def test_invalid_values_rejected(field) -> None:
    with pytest.raises(ValidationError):
        E2EConfig(_env_file=None, **field)


def test_scenario_parameters_from_config() -> None:
    params = ScenarioParameters.from_config(E2EConfig(_env_file=None, namespace_suffix="-1"))

    assert params.test_namespace == "kafka-test-ns-1"
    assert params.deployment_name == "kafka-test-deployment"
    assert params.scaled_object_name == "kafka-test-so"
    assert params.kafka_client_name == "kafka-test-client"
    assert params.bootstrap_server == "kafka-test-kafka-kafka-bootstrap.kafka-test-ns-1:9092"
    assert params.as_context()["topic1_name"] == "kafka-topic"
