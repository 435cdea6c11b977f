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

"""Exception hierarchy for setup, rendering, cluster, and command failures."""

from __future__ import annotations


class E2EError(RuntimeError):
    """Base class for all orchestration errors."""


class SetupError(E2EError):
    """Operator install or base resource creation failed; aborts the run."""


class TemplateError(E2EError):
    """A resource template could not be rendered into a valid document."""


class ApplyError(E2EError):
    """The cluster rejected an applied document."""


class DeleteError(E2EError):
    """A resource could not be deleted."""


class ObserveError(E2EError):
    """Reading cluster state failed transiently."""


class CommandError(E2EError):
    """A command exited non-zero.

    Attributes:
        command: The shell command that was run.
        exit_code: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    def __init__(self, command: str, exit_code: int | None = None, stdout: str = "", stderr: str = "") -> None:
        detail = stderr.strip() or stdout.strip()
        message = f"command failed with exit code {exit_code}: {command}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class CommandTimeoutError(CommandError):
    """A command did not finish before its deadline."""

    def __init__(self, command: str, timeout: float) -> None:
        E2EError.__init__(self, f"command timed out after {timeout:g}s: {command}")
        self.command = command
        self.exit_code = None
        self.stdout = ""
        self.stderr = ""
        self.timeout = timeout
