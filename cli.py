#!/usr/bin/env python3
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

"""
cli.py - Kafka consumer-lag autoscaling e2e scenarios.

Subcommands:
    run        Set up, run the scaling scenarios, and tear down
    scenarios  List the available scenarios
    env        Create or remove the shared test environment (setup, teardown)

Examples:
    # Full run (setup, all scenarios, teardown)
    ./cli.py run

    # Run two scenarios against an environment created earlier
    ./cli.py env setup
    ./cli.py run --skip-setup --skip-teardown -s earliest-policy -s multi-topic
    ./cli.py env teardown

Environment Variables:
    Connection and timing settings are read from KAFKA_E2E_* variables and
    from the env file (.env, or the path in KAFKA_E2E_ENV_FILE):
    - KAFKA_E2E_KUBE_CONTEXT / KAFKA_E2E_KUBECONFIG
    - KAFKA_E2E_NAMESPACE_SUFFIX
    - KAFKA_E2E_POLL_ATTEMPTS, KAFKA_E2E_POLL_INTERVAL, KAFKA_E2E_STABILITY_WINDOW
    - KAFKA_E2E_OBSERVE_ERROR_POLICY (consume | retry)

For detailed usage information, run: ./cli.py --help
"""

from __future__ import annotations

import logging
import sys

import typer

from kafka_scaler_e2e import console
from kafka_scaler_e2e.commands import env_cmd, run_cmd

app = typer.Typer(
    help="Kafka consumer-lag autoscaling e2e scenarios.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log poll attempts and commands"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command("run")(run_cmd.run)
app.command("scenarios")(run_cmd.list_scenarios)
app.add_typer(env_cmd.app, name="env")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
