# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""
Deploy two AKS clusters in different regions, peer their VNets, and join them
to an Azure Fleet Manager hub that places the AKS store demo on both.
"""

import shutil
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from aksfleet import manifests
from aksfleet.config.logging import get_logger, step_context
from aksfleet.config.settings import ClusterSite, Settings
from aksfleet.errors import CommandError, DeploymentError, failure_message
from aksfleet.service.azure import AzureCli
from aksfleet.service.kubectl import KubeCtl
from aksfleet.service.shell import Runner, run_command

logger = get_logger(__name__)

REQUIRED_TOOLS = ("az", "kubectl")


class FleetDeployment:
    """Deployment manager for the two-region AKS fleet demo."""

    def __init__(self, settings: Optional[Settings] = None, runner: Runner = run_command):
        self.settings = settings or Settings()
        self.runner = runner
        self.az = AzureCli(runner, timeout=self.settings.COMMAND_TIMEOUT)
        self.hub = self._kubectl(self.settings.fleet_kubeconfig)
        self.east, self.west = self.settings.sites()
        self.outputs: Dict[str, str] = {}

    def _kubectl(self, kubeconfig: str) -> KubeCtl:
        return KubeCtl(kubeconfig, runner=self.runner, timeout=self.settings.COMMAND_TIMEOUT)

    @property
    def sites(self) -> Tuple[ClusterSite, ClusterSite]:
        return self.east, self.west

    def validate_prerequisites(self):
        """Check that the required CLIs are installed and az is logged in."""
        logger.info("Validating prerequisites...")

        for tool in REQUIRED_TOOLS:
            if shutil.which(tool) is None:
                raise DeploymentError(f"{tool} is not available in PATH")
            logger.info(f"✓ {tool} is available")

        with failure_message("Azure CLI is not authenticated. Run 'az login' first."):
            self.az.account_show()
        logger.info("✓ Azure CLI is authenticated")

    # Networking

    def create_resource_group(self, name: str, location: str):
        logger.info("Creating resource group", name=name, location=location)
        with failure_message(f"Failed to create resource group {name}"):
            self.az.group_create(name, location)

    def create_network(self, site: ClusterSite):
        """Create the site's resource group, VNet and subnet, and record their IDs."""
        self.create_resource_group(site.resource_group, site.location)

        logger.info(
            f"Creating VNet and Subnet in {site.resource_group} with CIDR {site.vnet_cidr}"
        )
        with failure_message(f"Failed to create VNet and Subnet in {site.resource_group}"):
            self.az.vnet_create(
                site.resource_group,
                site.vnet_name,
                site.vnet_cidr,
                site.subnet_name,
                site.subnet_prefix,
            )

        with failure_message("Failed to get Subnet ID"):
            self.outputs[f"subnet_id_{site.label}"] = self.az.subnet_id(
                site.resource_group, site.vnet_name, site.subnet_name
            )
        with failure_message("Failed to get VNet ID"):
            self.outputs[f"vnet_id_{site.label}"] = self.az.vnet_id(
                site.resource_group, site.vnet_name
            )
        logger.info(f"✓ Network ready in {site.location}")

    def peer_vnets(self):
        """Peer the east and west VNets in both directions."""
        logger.info(f"Peering VNets between {self.east.vnet_name} and {self.west.vnet_name}...")
        for local, remote in ((self.east, self.west), (self.west, self.east)):
            peering = f"{local.label.title()}To{remote.label.title()}Peering"
            with failure_message(f"Failed to peer {local.label} to {remote.label} VNets"):
                self.az.vnet_peering_create(
                    peering,
                    local.resource_group,
                    local.vnet_name,
                    self.outputs[f"vnet_id_{remote.label}"],
                )
        logger.info("✓ VNets peered")

    # Clusters

    def create_cluster(self, site: ClusterSite):
        """Create the site's AKS cluster in its subnet and fetch its kubeconfig."""
        logger.info("Creating AKS cluster", cluster=site.cluster_name, location=site.location)
        with failure_message(f"Failed to create AKS cluster {site.cluster_name}"):
            self.az.aks_create(
                site.resource_group,
                site.cluster_name,
                self.outputs[f"subnet_id_{site.label}"],
            )
        with failure_message(f"Failed to get credentials for {site.cluster_name}"):
            self.az.aks_get_credentials(site.resource_group, site.cluster_name, site.kubeconfig)
        logger.info(f"✓ AKS cluster {site.cluster_name} created")

    def lookup_cluster_id(self, site: ClusterSite) -> str:
        with failure_message(f"Failed to get Cluster ID for {site.cluster_name}"):
            cluster_id = self.az.aks_id(site.resource_group, site.cluster_name)
        self.outputs[f"cluster_id_{site.label}"] = cluster_id
        return cluster_id

    # Fleet Manager

    def create_fleet(self):
        """Create the Fleet Manager with a hub cluster and fetch the hub kubeconfig."""
        settings = self.settings
        with failure_message("Failed to add Fleet extension"):
            self.az.extension_add(settings.FLEET_EXTENSION)

        with failure_message(
            f"Failed to create Fleet resource group {settings.FLEET_RESOURCE_GROUP_NAME}"
        ):
            self.az.group_create(settings.FLEET_RESOURCE_GROUP_NAME, settings.FLEET_LOCATION)

        logger.info("Creating Fleet Manager", fleet=settings.FLEET, location=settings.FLEET_LOCATION)
        with failure_message(f"Failed to create Fleet Manager {settings.FLEET}"):
            self.az.fleet_create(
                settings.FLEET_RESOURCE_GROUP_NAME, settings.FLEET, settings.FLEET_LOCATION
            )
        with failure_message(f"Failed to get credentials for Fleet Manager {settings.FLEET}"):
            self.az.fleet_get_credentials(
                settings.FLEET_RESOURCE_GROUP_NAME, settings.FLEET, settings.fleet_kubeconfig
            )
        logger.info(f"✓ Fleet Manager {settings.FLEET} created")

    def join_fleet(self, site: ClusterSite):
        with failure_message(f"Failed to join cluster {site.cluster_name} to Fleet Manager"):
            self.az.fleet_member_create(
                self.settings.FLEET_RESOURCE_GROUP_NAME,
                self.settings.FLEET,
                site.cluster_name,
                self.outputs[f"cluster_id_{site.label}"],
            )
        logger.info(f"✓ {site.cluster_name} joined {self.settings.FLEET}")

    def assign_role(self):
        """Grant the signed-in user cluster admin on the fleet hub."""
        settings = self.settings
        with failure_message(f"Failed to get Fleet ID for {settings.FLEET}"):
            fleet_id = self.az.fleet_id(settings.FLEET_RESOURCE_GROUP_NAME, settings.FLEET)
        self.outputs["fleet_id"] = fleet_id

        with failure_message("Failed to get signed-in user"):
            identity = self.az.signed_in_user_id()
        with failure_message("Failed to assign role to user"):
            self.az.role_assignment_create(settings.FLEET_ROLE, identity, fleet_id)
        logger.info("✓ Role assigned", role=settings.FLEET_ROLE)

    # Workload

    def _write_manifest(self, manifest: Dict[str, Any], name: str) -> Path:
        path = self.settings.output_path(name)
        try:
            return manifests.write_manifest(manifest, path)
        except OSError as e:
            raise DeploymentError(f"Failed to write {path}: {e.strerror or e}") from e

    def deploy_demo(self):
        """Deploy the demo application and its ServiceExport to the hub."""
        settings = self.settings
        namespace = settings.DEMO_NAMESPACE
        export_file = self._write_manifest(
            manifests.service_export(settings.DEMO_SERVICE, namespace),
            manifests.SERVICE_EXPORT_FILE,
        )

        with failure_message("Failed to create namespace"):
            if not self.hub.create_namespace_if_not_exist(namespace):
                logger.info(f"Namespace {namespace} already exists")
        with failure_message("Failed to deploy AKS store demo"):
            self.hub.apply(settings.DEMO_MANIFEST_URL, namespace=namespace)
        with failure_message("Failed to deploy AKS store service export"):
            self.hub.apply(str(export_file), namespace=namespace)
        logger.info("✓ Demo application deployed", namespace=namespace)

    def create_placement(self):
        """Place the demo namespace on the member clusters in both regions."""
        settings = self.settings
        placement_file = self._write_manifest(
            manifests.cluster_resource_placement(
                settings.PLACEMENT_NAME,
                settings.DEMO_NAMESPACE,
                [site.location for site in self.sites],
            ),
            manifests.PLACEMENT_FILE,
        )
        with failure_message("Failed to apply ClusterResourcePlacement"):
            self.hub.apply(str(placement_file))
        logger.info("✓ ClusterResourcePlacement applied", name=settings.PLACEMENT_NAME)

    def create_multi_cluster_service(self):
        settings = self.settings
        mcs_file = self._write_manifest(
            manifests.multi_cluster_service(settings.DEMO_SERVICE, settings.DEMO_NAMESPACE),
            manifests.MULTI_CLUSTER_SERVICE_FILE,
        )
        with failure_message("Failed to create MultiClusterService"):
            self.hub.apply(str(mcs_file))
        logger.info("✓ MultiClusterService created", name=settings.DEMO_SERVICE)

    def validate_placement(self) -> str:
        with failure_message("Failed to validate ClusterResourcePlacement"):
            output = self.hub.get("clusterresourceplacement")
        # Command output goes to stdout, logs to stderr
        sys.stdout.write(f"{output}\n")
        return output

    def validate_exports(self) -> Dict[str, str]:
        """Show the demo ServiceExport on each member cluster."""
        results = {}
        for site in self.sites:
            kubeconfig = site.kubeconfig
            with failure_message(f"Failed to validate service export for {kubeconfig}"):
                output = self._kubectl(kubeconfig).get(
                    "serviceexport",
                    self.settings.DEMO_SERVICE,
                    namespace=self.settings.DEMO_NAMESPACE,
                )
            sys.stdout.write(f"\n{kubeconfig}\n--------\n{output}\n")
            results[site.label] = output
        return results

    def deploy(self) -> bool:
        """Main deployment orchestration method."""
        try:
            logger.info("Starting AKS fleet deployment...")

            with step_context("prerequisites"):
                self.validate_prerequisites()

            with step_context("network"):
                for site in self.sites:
                    self.create_network(site)

            with step_context("clusters"):
                for site in self.sites:
                    self.create_cluster(site)
                for site in self.sites:
                    self.lookup_cluster_id(site)

            with step_context("peering"):
                self.peer_vnets()

            with step_context("fleet"):
                self.create_fleet()
                for site in self.sites:
                    self.join_fleet(site)
                self.assign_role()

            with step_context("workload"):
                self.deploy_demo()
                self.create_placement()
                if self.settings.CREATE_MULTI_CLUSTER_SERVICE:
                    self.create_multi_cluster_service()

            with step_context("validate"):
                self.validate_placement()
                self.validate_exports()

            self._display_summary()
            logger.info("🎉 AKS fleet deployment completed successfully!")
            return True

        except DeploymentError as e:
            cause = e.__cause__
            logger.error(f"Deployment failed: {e}", cause=str(cause) if cause else None)
            return False

    def cleanup(self) -> bool:
        """Delete all three resource groups without waiting for completion."""
        logger.info("Cleaning up resources...")
        groups = [site.resource_group for site in self.sites]
        groups.append(self.settings.FLEET_RESOURCE_GROUP_NAME)

        failed = []
        with step_context("cleanup"):
            for group in groups:
                try:
                    self.az.group_delete(group, no_wait=True)
                    logger.info(f"✓ Deletion of {group} requested")
                except CommandError as e:
                    logger.error(f"Failed to delete resource group {group}", cause=str(e))
                    failed.append(group)

        if failed:
            logger.error("Cleanup incomplete", failed=failed)
            return False
        logger.info("✓ Cleanup requested for all resource groups")
        return True

    def _display_summary(self):
        """Display connection information for the deployed fleet."""
        logger.info("=" * 60)
        logger.info("DEPLOYMENT SUMMARY")
        logger.info("=" * 60)
        for site in self.sites:
            logger.info(f"{site.cluster_name} ({site.location})")
            logger.info(f"  Cluster ID: {self.outputs.get(f'cluster_id_{site.label}')}")
            logger.info(f"  Kubeconfig: {site.kubeconfig}")
        logger.info(f"Fleet ID: {self.outputs.get('fleet_id')}")
        logger.info(f"Fleet hub kubeconfig: {self.settings.fleet_kubeconfig}")
        logger.info("")
        logger.info("To inspect the placement:")
        logger.info(
            f"KUBECONFIG={self.settings.fleet_kubeconfig} kubectl get clusterresourceplacement"
        )
        logger.info("=" * 60)
