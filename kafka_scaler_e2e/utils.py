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

"""Utility functions for prerequisite checks and command formatting."""

from __future__ import annotations

import shlex

import sh

from kafka_scaler_e2e.errors import SetupError


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        SetupError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise SetupError(f"Required command '{cmd}' not found. Please install it first.") from err


def join_command(program: str, *args: str) -> str:
    """Quote *args* into a single shell command string for *program*."""
    return " ".join([program, *(shlex.quote(str(arg)) for arg in args)])
