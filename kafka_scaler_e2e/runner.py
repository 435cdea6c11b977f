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

"""Scenario runner: setup, sequential scenarios, and teardown."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from rich.panel import Panel
from rich.table import Table

from kafka_scaler_e2e import console, logger
from kafka_scaler_e2e.config import E2EConfig, ScenarioParameters
from kafka_scaler_e2e.constants import BASE_TOPICS, CONDITION_READY, KIND_POD
from kafka_scaler_e2e.errors import (
    ApplyError,
    CommandError,
    DeleteError,
    SetupError,
    TemplateError,
)
from kafka_scaler_e2e.executor import CommandChannel
from kafka_scaler_e2e.kafka import add_cluster, add_topic, install_kafka_operator, uninstall_kafka_operator
from kafka_scaler_e2e.manifests import BASE_TEMPLATES
from kafka_scaler_e2e.resources import Kubectl, ResourceManager
from kafka_scaler_e2e.scenarios import SCENARIOS, Scenario, ScenarioContext
from kafka_scaler_e2e.templates import render
from kafka_scaler_e2e.utils import require_command


class RunState(str, Enum):
    SETUP = "setup"
    SCENARIOS = "scenarios"
    TEARDOWN = "teardown"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ScenarioResult:
    """Outcome of one scenario.

    Attributes:
        name: Scenario name.
        failures: Assertion failures recorded while the steps ran.
        error: Apply or command error that ended the scenario early, or None.
        skipped: True if the scenario never ran.
    """

    name: str
    failures: list[str] = field(default_factory=list)
    error: str | None = None
    skipped: bool = False

    @property
    def passed(self) -> bool:
        return not self.skipped and not self.failures and self.error is None

    @property
    def status(self) -> str:
        if self.skipped:
            return "skipped"
        if self.error is not None:
            return "error"
        return "passed" if self.passed else "failed"


@dataclass
class RunReport:
    """Outcome of a whole run.

    Attributes:
        results: One entry per selected scenario.
        error: Unrecoverable setup or template error, or None.
        teardown_errors: Teardown steps that failed.
        state: Final runner state.
    """

    results: list[ScenarioResult] = field(default_factory=list)
    error: str | None = None
    teardown_errors: list[str] = field(default_factory=list)
    state: RunState = RunState.SETUP

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and not self.teardown_errors
            and all(result.passed for result in self.results)
        )

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


class ScenarioRunner:
    """Runs setup, each scenario in turn, and teardown against one cluster.

    A failed scenario is recorded and the next one still runs. A setup or
    template error skips the remaining scenarios. Teardown runs in every case
    unless disabled.

    Args:
        cfg: Run configuration.
        resources: Resource lifecycle manager bound to the cluster.
        channel: Command channel for pod and local commands.
        scenarios: Scenarios to run, defaulting to all of them.
        sleep: Sleep function used between poll attempts.
        skip_setup: Assume base resources already exist.
        skip_teardown: Leave base resources in place after the run.
    """

    def __init__(
        self,
        cfg: E2EConfig,
        resources: ResourceManager,
        channel: CommandChannel,
        scenarios: Iterable[Scenario] | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        skip_setup: bool = False,
        skip_teardown: bool = False,
    ) -> None:
        self.cfg = cfg
        self.resources = resources
        self.channel = channel
        self.scenarios = list(SCENARIOS if scenarios is None else scenarios)
        self.sleep = sleep
        self.skip_setup = skip_setup
        self.skip_teardown = skip_teardown
        self.base = ScenarioParameters.from_config(cfg)
        self.state = RunState.SETUP

    @classmethod
    def from_config(cls, cfg: E2EConfig, **kwargs) -> ScenarioRunner:
        """Build a runner talking to the cluster selected by *cfg*."""
        flags = cfg.kubectl_flags()
        resources = ResourceManager(Kubectl(flags))
        channel = CommandChannel(cfg.command_timeout, kubectl_flags=flags)
        return cls(cfg, resources, channel, **kwargs)

    def _transition(self, state: RunState) -> None:
        logger.debug("runner state %s -> %s", self.state.value, state.value)
        self.state = state

    # ------------------------------------------------------------------
    # Setup and teardown
    # ------------------------------------------------------------------

    def setup(self) -> None:
        """Create the namespace, base resources, operator, cluster, and topics.

        Raises:
            SetupError: If any step fails.
            TemplateError: If a base template cannot be rendered.
        """
        console.print(Panel.fit(f"Setting up namespace {self.cfg.namespace}", style="bold blue"))
        for cmd in ("kubectl", "helm"):
            require_command(cmd)

        namespace = self.base.test_namespace
        try:
            self.resources.create_namespace(namespace)
            for template in BASE_TEMPLATES:
                self.resources.apply(namespace, render(template, self.base))
            install_kafka_operator(self.channel, self.cfg)
            add_cluster(self.resources, self.base, self.cfg.ready_timeout)
            for name, partitions in BASE_TOPICS:
                add_topic(self.resources, self.base, name, partitions, self.cfg.ready_timeout)
            self.resources.wait_for_condition(
                KIND_POD, self.base.kafka_client_name, CONDITION_READY, self.cfg.ready_timeout, namespace,
            )
        except (ApplyError, CommandError) as err:
            raise SetupError(f"Setup failed: {err}") from err
        console.print("[green]✅ Setup complete[/green]")

    def teardown(self) -> list[str]:
        """Uninstall the operator and delete everything the run created.

        Returns:
            Messages for teardown steps that failed. Failed resource deletes
            are logged but not returned.
        """
        console.print(Panel.fit("Tearing down", style="bold blue"))
        errors: list[str] = []
        namespace = self.base.test_namespace

        try:
            uninstall_kafka_operator(self.channel, self.cfg)
        except CommandError as err:
            console.print(f"[red]❌ {err}[/red]")
            errors.append(f"operator uninstall failed: {err}")

        for template in BASE_TEMPLATES:
            try:
                self.resources.delete(namespace, render(template, self.base))
            except (DeleteError, TemplateError) as err:
                console.print(f"[yellow]⚠️  {err}[/yellow]")
        self.resources.cleanup()

        try:
            self.resources.delete_namespace(namespace, self.cfg.ready_timeout)
        except DeleteError as err:
            console.print(f"[red]❌ {err}[/red]")
            errors.append(str(err))

        if not errors:
            console.print("[green]✅ Teardown complete[/green]")
        return errors

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def run_scenario(self, scenario: Scenario) -> ScenarioResult:
        """Run one scenario and delete its resources whatever the outcome.

        Raises:
            TemplateError: If one of the scenario's templates cannot be rendered.
        """
        console.print(Panel.fit(f"Scenario: {scenario.name}", style="bold blue"))
        console.print(f"[dim]{scenario.description}[/dim]")
        params = scenario.parameters(self.base)
        namespace = params.test_namespace
        rendered = [render(template, params) for template in scenario.templates]

        ctx = ScenarioContext(params, self.cfg, self.resources, self.channel, sleep=self.sleep)
        result = ScenarioResult(scenario.name)
        try:
            if scenario.prepare is not None:
                scenario.prepare(ctx)
            for resource in rendered:
                self.resources.apply(namespace, resource)
            scenario.steps(ctx)
        except (ApplyError, CommandError) as err:
            console.print(f"[red]❌ {err}[/red]")
            result.error = str(err)
        finally:
            for resource in rendered:
                try:
                    self.resources.delete(namespace, resource)
                except DeleteError as err:
                    console.print(f"[yellow]⚠️  {err}[/yellow]")

        result.failures = list(ctx.failures)
        if result.passed:
            console.print(f"[green]✅ {scenario.name} passed[/green]")
        else:
            console.print(f"[red]❌ {scenario.name} {result.status}[/red]")
        return result

    def run(self) -> RunReport:
        """Run setup, every scenario, and teardown.

        Returns:
            The run report; its ``exit_code`` is non-zero on any failure.
        """
        report = RunReport()
        try:
            self._run_scenarios(report)
        finally:
            if not self.skip_teardown:
                self._transition(RunState.TEARDOWN)
                report.teardown_errors = self.teardown()
            failed = report.error is not None or bool(report.teardown_errors)
            self._transition(RunState.FAILED if failed else RunState.DONE)
            report.state = self.state
        return report

    def _run_scenarios(self, report: RunReport) -> None:
        if not self.skip_setup:
            self._transition(RunState.SETUP)
            try:
                self.setup()
            except (SetupError, TemplateError) as err:
                self._abort(report, err, self.scenarios)
                return

        self._transition(RunState.SCENARIOS)
        for index, scenario in enumerate(self.scenarios):
            try:
                report.results.append(self.run_scenario(scenario))
            except TemplateError as err:
                report.results.append(ScenarioResult(scenario.name, error=str(err)))
                self._abort(report, err, self.scenarios[index + 1:])
                return

    def _abort(self, report: RunReport, err: Exception, remaining: list[Scenario]) -> None:
        console.print(f"[red]❌ {err}[/red]")
        report.error = str(err)
        self._transition(RunState.FAILED)
        report.results.extend(ScenarioResult(scenario.name, skipped=True) for scenario in remaining)


def print_report(report: RunReport) -> None:
    """Print a per-scenario summary table."""
    table = Table(title="Scenario results")
    table.add_column("Scenario")
    table.add_column("Status")
    table.add_column("Details")
    styles = {"passed": "green", "failed": "red", "error": "red", "skipped": "yellow"}
    for result in report.results:
        details = "; ".join(result.failures + ([result.error] if result.error else []))
        table.add_row(result.name, f"[{styles[result.status]}]{result.status}[/]", details)
    console.print(table)
    if report.error:
        console.print(f"[red]❌ {report.error}[/red]")
    for err in report.teardown_errors:
        console.print(f"[red]❌ teardown: {err}[/red]")
    if report.ok:
        console.print("[green]✅ All scenarios passed[/green]")
