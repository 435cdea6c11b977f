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

"""Scenario run and listing commands."""

from __future__ import annotations

import typer
from rich.table import Table

from kafka_scaler_e2e import console
from kafka_scaler_e2e.config import display_config, load_config
from kafka_scaler_e2e.runner import ScenarioRunner, print_report
from kafka_scaler_e2e.scenarios import SCENARIOS, select_scenarios


def run(
    scenario: list[str] | None = typer.Option(
        None, "--scenario", "-s", help="Scenario to run (repeatable, default: all)"),
    skip_setup: bool = typer.Option(
        False, "--skip-setup", help="Reuse an existing namespace, operator, cluster, and topics"),
    skip_teardown: bool = typer.Option(
        False, "--skip-teardown", help="Leave the namespace and operator in place"),
    namespace_suffix: str | None = typer.Option(
        None, "--namespace-suffix", help="Suffix for the test namespace (overrides KAFKA_E2E_NAMESPACE_SUFFIX)"),
    env_file: str | None = typer.Option(
        None, "--env-file", help="Env file with connection settings (default: .env)"),
) -> None:
    """Run the scaling scenarios and exit non-zero if any of them failed."""
    try:
        scenarios = select_scenarios(scenario)
    except ValueError as err:
        raise typer.BadParameter(str(err), param_hint="--scenario") from err

    cfg = load_config(env_file, namespace_suffix=namespace_suffix)
    display_config(cfg)
    runner = ScenarioRunner.from_config(
        cfg, scenarios=scenarios, skip_setup=skip_setup, skip_teardown=skip_teardown,
    )
    report = runner.run()
    print_report(report)
    raise typer.Exit(code=report.exit_code)


def list_scenarios() -> None:
    """List the available scenarios."""
    table = Table(title="Scenarios")
    table.add_column("Name")
    table.add_column("Description")
    for scenario in SCENARIOS:
        table.add_row(scenario.name, scenario.description)
    console.print(table)
