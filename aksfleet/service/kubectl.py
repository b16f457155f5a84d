# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Interface to kubectl, bound to one kubeconfig file."""

import os
from typing import Optional

from aksfleet.service.shell import Runner, run_command


class KubeCtl:
    def __init__(
        self,
        kubeconfig: str,
        runner: Runner = run_command,
        timeout: Optional[int] = None,
    ):
        self.kubeconfig = kubeconfig
        self.runner = runner
        self.timeout = timeout

    def exec_command(self, *args: str, capture_output: bool = False) -> Optional[str]:
        """Run ``kubectl`` against this instance's cluster."""
        env = dict(os.environ)
        env["KUBECONFIG"] = self.kubeconfig
        return self.runner(
            ["kubectl", *args],
            capture_output=capture_output,
            env=env,
            timeout=self.timeout,
        )

    def namespace_exists(self, namespace: str) -> bool:
        output = self.exec_command(
            "get", "namespace", namespace, "--ignore-not-found", "-o", "name",
            capture_output=True,
        )
        return bool(output)

    def create_namespace(self, namespace: str):
        self.exec_command("create", "namespace", namespace)

    def create_namespace_if_not_exist(self, namespace: str) -> bool:
        """Create the namespace unless it is already there.

        Returns:
            bool: True if the namespace was created by this call.
        """
        if self.namespace_exists(namespace):
            return False
        self.create_namespace(namespace)
        return True

    def apply(self, manifest: str, namespace: Optional[str] = None):
        """Apply a manifest from a local path or a URL.

        Args:
            manifest (str): File path or URL passed to ``-f``.
            namespace (str): Namespace to apply into, if any.
        """
        args = ["apply"]
        if namespace:
            args += ["-n", namespace]
        args += ["-f", manifest]
        self.exec_command(*args)

    def get(self, kind: str, name: Optional[str] = None, namespace: Optional[str] = None) -> str:
        """Return the tabular ``kubectl get`` output for a resource kind."""
        args = ["get", kind]
        if name:
            args.append(name)
        if namespace:
            args += ["-n", namespace]
        return self.exec_command(*args, capture_output=True)
