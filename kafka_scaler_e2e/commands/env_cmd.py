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

"""Environment subcommands (setup, teardown)."""

from __future__ import annotations

import typer

from kafka_scaler_e2e import console
from kafka_scaler_e2e.config import display_config, load_config
from kafka_scaler_e2e.errors import SetupError, TemplateError
from kafka_scaler_e2e.runner import ScenarioRunner

app = typer.Typer(help="Create or remove the shared test environment.")


@app.command()
def setup(
    namespace_suffix: str | None = typer.Option(None, "--namespace-suffix", help="Suffix for the test namespace"),
    env_file: str | None = typer.Option(None, "--env-file", help="Env file with connection settings"),
) -> None:
    """Create the namespace, Strimzi operator, Kafka cluster, topics, and client pod."""
    cfg = load_config(env_file, namespace_suffix=namespace_suffix)
    display_config(cfg)
    try:
        ScenarioRunner.from_config(cfg).setup()
    except (SetupError, TemplateError) as err:
        console.print(f"[red]❌ {err}[/red]")
        raise typer.Exit(code=1) from err


@app.command()
def teardown(
    namespace_suffix: str | None = typer.Option(None, "--namespace-suffix", help="Suffix for the test namespace"),
    env_file: str | None = typer.Option(None, "--env-file", help="Env file with connection settings"),
) -> None:
    """Uninstall the operator and delete the test namespace."""
    cfg = load_config(env_file, namespace_suffix=namespace_suffix)
    errors = ScenarioRunner.from_config(cfg).teardown()
    if errors:
        raise typer.Exit(code=1)
