# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Interface for Azure CLI operations"""

from typing import Optional

from aksfleet.service.shell import Runner, run_command


class AzureCli:
    def __init__(self, runner: Runner = run_command, timeout: Optional[int] = None):
        self.runner = runner
        self.timeout = timeout

    def exec_command(self, *args: str, capture_output: bool = False) -> Optional[str]:
        """Run ``az`` with the given arguments."""
        return self.runner(
            ["az", *args], capture_output=capture_output, timeout=self.timeout
        )

    def query_id(self, *args: str) -> str:
        """Run an ``az ... show`` style command and return the resource ID."""
        return self.exec_command(*args, "--query", "id", "-o", "tsv", capture_output=True)

    def account_show(self) -> str:
        return self.exec_command("account", "show", "--query", "id", "-o", "tsv", capture_output=True)

    # Resource groups

    def group_create(self, name: str, location: str):
        self.exec_command("group", "create", "--name", name, "--location", location)

    def group_delete(self, name: str, no_wait: bool = True):
        """Delete a resource group without prompting.

        Args:
            name (str): Resource group to delete.
            no_wait (bool): Return as soon as the deletion is accepted.
        """
        args = ["group", "delete", "--name", name, "--yes"]
        if no_wait:
            args.append("--no-wait")
        self.exec_command(*args)

    # Networking

    def vnet_create(
        self,
        resource_group: str,
        name: str,
        address_prefix: str,
        subnet_name: str,
        subnet_prefix: str,
    ):
        """Create a virtual network together with its first subnet."""
        self.exec_command(
            "network", "vnet", "create",
            "--resource-group", resource_group,
            "--name", name,
            "--address-prefix", address_prefix,
            "--subnet-name", subnet_name,
            "--subnet-prefix", subnet_prefix,
        )

    def subnet_id(self, resource_group: str, vnet_name: str, subnet_name: str) -> str:
        return self.query_id(
            "network", "vnet", "subnet", "show",
            "--resource-group", resource_group,
            "--vnet-name", vnet_name,
            "--name", subnet_name,
        )

    def vnet_id(self, resource_group: str, vnet_name: str) -> str:
        return self.query_id(
            "network", "vnet", "show",
            "--resource-group", resource_group,
            "--name", vnet_name,
        )

    def vnet_peering_create(
        self, name: str, resource_group: str, vnet_name: str, remote_vnet_id: str
    ):
        """Peer ``vnet_name`` with the remote VNet, one direction only."""
        self.exec_command(
            "network", "vnet", "peering", "create",
            "--name", name,
            "--resource-group", resource_group,
            "--vnet-name", vnet_name,
            "--remote-vnet", remote_vnet_id,
            "--allow-vnet-access",
        )

    # AKS

    def aks_create(self, resource_group: str, name: str, subnet_id: str):
        self.exec_command(
            "aks", "create",
            "--resource-group", resource_group,
            "--name", name,
            "--network-plugin", "azure",
            "--vnet-subnet-id", subnet_id,
        )

    def aks_get_credentials(self, resource_group: str, name: str, kubeconfig: str):
        self.exec_command(
            "aks", "get-credentials",
            "--resource-group", resource_group,
            "--name", name,
            "--file", kubeconfig,
        )

    def aks_id(self, resource_group: str, name: str) -> str:
        return self.query_id("aks", "show", "--resource-group", resource_group, "--name", name)

    # Fleet Manager

    def extension_add(self, name: str):
        self.exec_command("extension", "add", "--name", name)

    def fleet_create(self, resource_group: str, name: str, location: str, enable_hub: bool = True):
        args = [
            "fleet", "create",
            "--resource-group", resource_group,
            "--name", name,
            "--location", location,
        ]
        if enable_hub:
            args.append("--enable-hub")
        self.exec_command(*args)

    def fleet_get_credentials(self, resource_group: str, name: str, kubeconfig: str):
        self.exec_command(
            "fleet", "get-credentials",
            "--resource-group", resource_group,
            "--name", name,
            "--file", kubeconfig,
        )

    def fleet_member_create(
        self, resource_group: str, fleet_name: str, name: str, member_cluster_id: str
    ):
        self.exec_command(
            "fleet", "member", "create",
            "--resource-group", resource_group,
            "--fleet-name", fleet_name,
            "--name", name,
            "--member-cluster-id", member_cluster_id,
        )

    def fleet_id(self, resource_group: str, name: str) -> str:
        return self.query_id("fleet", "show", "--resource-group", resource_group, "--name", name)

    # Identity

    def signed_in_user_id(self) -> str:
        return self.query_id("ad", "signed-in-user", "show")

    def role_assignment_create(self, role: str, assignee: str, scope: str):
        self.exec_command(
            "role", "assignment", "create",
            "--role", role,
            "--assignee", assignee,
            "--scope", scope,
        )
