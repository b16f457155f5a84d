# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Kubernetes manifests applied to the fleet hub."""

from pathlib import Path
from typing import Any, Dict, Iterable

import yaml

FLEET_NETWORKING_API = "networking.fleet.azure.com/v1alpha1"
PLACEMENT_API = "placement.kubernetes-fleet.io/v1beta1"
LOCATION_LABEL = "fleet.azure.com/location"

SERVICE_EXPORT_FILE = "aks-store-serviceexport.yaml"
PLACEMENT_FILE = "cluster-resource-placement.yaml"
MULTI_CLUSTER_SERVICE_FILE = "mcs.yaml"


def service_export(name: str, namespace: str) -> Dict[str, Any]:
    """Export a member cluster service so the fleet can import it."""
    return {
        "apiVersion": FLEET_NETWORKING_API,
        "kind": "ServiceExport",
        "metadata": {"name": name, "namespace": namespace},
    }


def cluster_resource_placement(
    name: str, namespace: str, locations: Iterable[str]
) -> Dict[str, Any]:
    """Place a whole namespace on every member cluster in the given locations.

    Args:
        name (str): Name of the ClusterResourcePlacement.
        namespace (str): Namespace selected, together with everything in it.
        locations (Iterable[str]): Azure regions whose member clusters must
            receive the namespace.
    """
    return {
        "apiVersion": PLACEMENT_API,
        "kind": "ClusterResourcePlacement",
        "metadata": {"name": name},
        "spec": {
            "resourceSelectors": [
                {"group": "", "version": "v1", "kind": "Namespace", "name": namespace}
            ],
            "policy": {
                "affinity": {
                    "clusterAffinity": {
                        "requiredDuringSchedulingIgnoredDuringExecution": {
                            "clusterSelectorTerms": [
                                {
                                    "labelSelector": {
                                        "matchExpressions": [
                                            {
                                                "key": LOCATION_LABEL,
                                                "operator": "In",
                                                "values": list(locations),
                                            }
                                        ]
                                    }
                                }
                            ]
                        }
                    }
                }
            },
        },
    }


def multi_cluster_service(name: str, namespace: str) -> Dict[str, Any]:
    """Load balance the imported service across member clusters."""
    return {
        "apiVersion": FLEET_NETWORKING_API,
        "kind": "MultiClusterService",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"serviceImport": {"name": name}},
    }


def write_manifest(manifest: Dict[str, Any], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(manifest, f, default_flow_style=False, sort_keys=False)
    return path
