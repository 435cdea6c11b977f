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

"""Applying, deleting, waiting on, and observing cluster resources via kubectl."""

from __future__ import annotations

import json

import sh

from kafka_scaler_e2e import console, logger
from kafka_scaler_e2e.constants import KUBECTL_DEFAULT_TIMEOUT, KUBECTL_TIMEOUT_SLACK
from kafka_scaler_e2e.errors import (
    ApplyError,
    CommandError,
    CommandTimeoutError,
    DeleteError,
    ObserveError,
    SetupError,
)
from kafka_scaler_e2e.templates import RenderedResource
from kafka_scaler_e2e.utils import join_command


class Kubectl:
    """Thin ``sh`` wrapper around kubectl carrying global flags.

    Args:
        flags: Global flags prepended to every call (context, kubeconfig).
        timeout: Default process deadline in seconds.
    """

    def __init__(self, flags: list[str] | None = None, timeout: float = KUBECTL_DEFAULT_TIMEOUT) -> None:
        self.flags = list(flags or [])
        self.timeout = timeout

    def __call__(self, *args: str, stdin: str | None = None, timeout: float | None = None) -> str:
        """Run kubectl and return its stdout.

        Raises:
            CommandError: If kubectl is missing or exits non-zero.
            CommandTimeoutError: If the deadline passes first.
        """
        command = join_command("kubectl", *self.flags, *args)
        deadline = self.timeout if timeout is None else timeout
        try:
            return str(sh.Command("kubectl")(*self.flags, *args, _in=stdin, _timeout=deadline))
        except sh.CommandNotFound as err:
            raise CommandError(command, stderr="'kubectl' not found on PATH") from err
        except sh.TimeoutException as err:
            raise CommandTimeoutError(command, deadline) from err
        except sh.ErrorReturnCode as err:
            raise CommandError(
                command,
                err.exit_code,
                err.stdout.decode("utf-8", errors="replace"),
                err.stderr.decode("utf-8", errors="replace"),
            ) from err


class ResourceManager:
    """Submits rendered documents to the cluster and tracks which are live.

    ``apply`` returns once the API server accepted the document; readiness is
    only awaited through :meth:`wait_for_condition`.
    """

    def __init__(self, kubectl: Kubectl) -> None:
        self._kubectl = kubectl
        self._live: dict[tuple[str, str, str], tuple[str, RenderedResource]] = {}

    @staticmethod
    def _key(namespace: str, resource: RenderedResource) -> tuple[str, str, str]:
        return namespace, resource.kind, resource.name

    @property
    def live(self) -> list[tuple[str, RenderedResource]]:
        """Resources applied and not yet deleted, in apply order."""
        return list(self._live.values())

    def apply(self, namespace: str, resource: RenderedResource) -> None:
        """Submit *resource* to *namespace*.

        Raises:
            ApplyError: If kubectl rejects the document.
        """
        logger.info("applying %s (%s) in %s", resource.ref, resource.template_name, namespace)
        try:
            self._kubectl("apply", "-n", namespace, "-f", "-", stdin=resource.document)
        except CommandError as err:
            raise ApplyError(f"failed to apply {resource.template_name}: {err}") from err
        key = self._key(namespace, resource)
        self._live.pop(key, None)
        self._live[key] = (namespace, resource)

    def delete(self, namespace: str, resource: RenderedResource) -> None:
        """Delete *resource*; a resource that does not exist is not an error.

        A resource whose delete fails stays tracked, so :meth:`cleanup`
        tries it again.

        Raises:
            DeleteError: If kubectl fails for any other reason.
        """
        logger.info("deleting %s (%s) in %s", resource.ref, resource.template_name, namespace)
        try:
            self._kubectl("delete", "-n", namespace, "-f", "-", "--ignore-not-found", stdin=resource.document)
        except CommandError as err:
            raise DeleteError(f"failed to delete {resource.template_name}: {err}") from err
        self._live.pop(self._key(namespace, resource), None)

    def wait_for_condition(self, kind: str, name: str, condition: str, timeout: int, namespace: str) -> None:
        """Block until ``kind/name`` reports *condition* or *timeout* seconds pass.

        Raises:
            SetupError: On timeout or kubectl failure.
        """
        console.print(f"[yellow]ℹ️  Waiting for {kind}/{name} to be {condition}...[/yellow]")
        try:
            self._kubectl(
                "wait", f"{kind}/{name}",
                f"--for=condition={condition}",
                f"--timeout={timeout}s",
                "--namespace", namespace,
                timeout=timeout + KUBECTL_TIMEOUT_SLACK,
            )
        except CommandError as err:
            raise SetupError(f"{kind}/{name} not {condition} after {timeout}s: {err}") from err
        console.print(f"[green]✅ {kind}/{name} is {condition}[/green]")

    def create_namespace(self, namespace: str) -> None:
        """Create *namespace*, accepting one that already exists.

        Raises:
            SetupError: If creation fails for another reason.
        """
        try:
            self._kubectl("create", "namespace", namespace)
        except CommandError as err:
            if "AlreadyExists" not in err.stderr:
                raise SetupError(f"Failed to create namespace {namespace}: {err}") from err
            logger.info("namespace %s already exists", namespace)

    def delete_namespace(self, namespace: str, timeout: int) -> None:
        """Delete *namespace* and wait for it to be gone.

        Raises:
            DeleteError: If deletion fails or does not finish in time.
        """
        try:
            self._kubectl(
                "delete", "namespace", namespace,
                "--ignore-not-found", "--wait", f"--timeout={timeout}s",
                timeout=timeout + KUBECTL_TIMEOUT_SLACK,
            )
        except CommandError as err:
            raise DeleteError(f"failed to delete namespace {namespace}: {err}") from err
        for key in [key for key in self._live if key[0] == namespace]:
            del self._live[key]

    def deployment_replicas(self, name: str, namespace: str, ready: bool = True) -> int:
        """Read the replica count of a Deployment.

        Args:
            name: Deployment name.
            namespace: Deployment namespace.
            ready: Read ``status.readyReplicas`` if True, else ``status.replicas``.

        Returns:
            The count, 0 when the status field is absent.

        Raises:
            ObserveError: If the Deployment cannot be read.
        """
        try:
            raw = self._kubectl("get", "deployment", name, "-n", namespace, "-o", "json")
            status = json.loads(raw).get("status") or {}
        except (CommandError, ValueError) as err:
            raise ObserveError(f"cannot read deployment {namespace}/{name}: {err}") from err
        return int(status.get("readyReplicas" if ready else "replicas") or 0)

    def cleanup(self) -> list[str]:
        """Delete every live resource in reverse apply order.

        Returns:
            Messages of deletes that failed; failures do not stop the cleanup.
        """
        errors: list[str] = []
        for namespace, resource in reversed(self.live):
            try:
                self.delete(namespace, resource)
            except DeleteError as err:
                console.print(f"[yellow]⚠️  {err}[/yellow]")
                errors.append(str(err))
        return errors
