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

"""Shell command execution inside workload pods and on the local host."""

from __future__ import annotations

from dataclasses import dataclass

import sh

from kafka_scaler_e2e import logger
from kafka_scaler_e2e.errors import CommandError, CommandTimeoutError


@dataclass(frozen=True)
class CommandResult:
    """Output of a finished command."""

    command: str
    stdout: str = ""
    stderr: str = ""


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class CommandChannel:
    """Runs opaque shell commands with a per-command deadline.

    Args:
        timeout: Default deadline in seconds for each command.
        kubectl_flags: Global kubectl flags (context, kubeconfig).
    """

    def __init__(self, timeout: float, kubectl_flags: list[str] | None = None) -> None:
        self.timeout = timeout
        self._kubectl_flags = list(kubectl_flags or [])

    def _run(self, program: str, args: list[str], command: str, timeout: float | None) -> CommandResult:
        deadline = self.timeout if timeout is None else timeout
        try:
            proc = sh.Command(program)(*args, _timeout=deadline, _return_cmd=True)
        except sh.CommandNotFound as err:
            raise CommandError(command, stderr=f"'{program}' not found on PATH") from err
        except sh.TimeoutException as err:
            raise CommandTimeoutError(command, deadline) from err
        except sh.ErrorReturnCode as err:
            raise CommandError(command, err.exit_code, _decode(err.stdout), _decode(err.stderr)) from err
        return CommandResult(command, _decode(proc.stdout), _decode(proc.stderr))

    def exec(self, pod: str, namespace: str, command: str, timeout: float | None = None) -> CommandResult:
        """Run *command* through ``sh -c`` inside *pod*.

        Args:
            pod: Target pod name.
            namespace: Namespace of the pod.
            command: Shell command string.
            timeout: Deadline override in seconds.

        Returns:
            Captured stdout and stderr.

        Raises:
            CommandError: If the command exits non-zero.
            CommandTimeoutError: If the deadline passes first.
        """
        logger.debug("exec in %s/%s: %s", namespace, pod, command)
        args = [*self._kubectl_flags, "exec", pod, "-n", namespace, "--", "sh", "-c", command]
        return self._run("kubectl", args, command, timeout)

    def exec_local(self, command: str, timeout: float | None = None) -> str:
        """Run *command* through ``sh -c`` on the local host and return its stdout.

        Raises:
            CommandError: If the command exits non-zero.
            CommandTimeoutError: If the deadline passes first.
        """
        logger.debug("exec local: %s", command)
        return self._run("sh", ["-c", command], command, timeout).stdout
