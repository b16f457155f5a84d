# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Deployment settings and configuration."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, Tuple

import yaml
from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from aksfleet.errors import ConfigError

DEMO_MANIFEST_URL = (
    "https://raw.githubusercontent.com/Azure-Samples/aks-store-demo/main/"
    "aks-store-ingress-quickstart.yaml"
)


@dataclass(frozen=True)
class ClusterSite:
    """Everything needed to stand up one regional AKS cluster."""

    label: str
    location: str
    resource_group: str
    cluster_name: str
    vnet_name: str
    vnet_cidr: str
    subnet_name: str
    subnet_prefix: str
    kubeconfig: str


class Settings(BaseSettings):
    """Deployment settings loaded from environment variables."""

    # Regions
    LOCATION_EAST: str = "eastus2"
    LOCATION_WEST: str = "westus2"

    # Derived from the location when left empty
    RESOURCE_GROUP_EAST: str = ""
    RESOURCE_GROUP_WEST: str = ""
    CLUSTER_NAME_EAST: str = ""
    CLUSTER_NAME_WEST: str = ""

    # Networking, non-overlapping ranges
    VNET_NAME_EAST: str = "aks-vnet-east"
    VNET_NAME_WEST: str = "aks-vnet-west"
    CIDR_EAST: str = "10.1.0.0/16"
    CIDR_WEST: str = "10.2.0.0/16"
    SUBNET_NAME_EAST: str = "aks-subnet-east"
    SUBNET_NAME_WEST: str = "aks-subnet-west"
    SUBNET_PREFIX_EAST: str = "10.1.0.0/24"
    SUBNET_PREFIX_WEST: str = "10.2.0.0/24"

    # Kubeconfig files, relative to OUTPUT_DIR
    KUBECONFIG_EAST: str = "east-aks"
    KUBECONFIG_WEST: str = "west-aks"
    FLEET_KUBECONFIG: str = "fleet"

    # Fleet Manager
    FLEET_RESOURCE_GROUP_NAME: str = "rg-fleet"
    FLEET: str = "gbb-fleet"
    FLEET_LOCATION: str = "westus"
    FLEET_EXTENSION: str = "fleet"
    FLEET_ROLE: str = "Azure Kubernetes Fleet Manager RBAC Cluster Admin"

    # Demo workload
    DEMO_NAMESPACE: str = "aks-store-demo"
    DEMO_MANIFEST_URL: str = DEMO_MANIFEST_URL
    DEMO_SERVICE: str = "store-front"
    PLACEMENT_NAME: str = "aks-store-demo"
    CREATE_MULTI_CLUSTER_SERVICE: bool = False

    # Runtime
    OUTPUT_DIR: str = "."
    COMMAND_TIMEOUT: Optional[int] = None  # seconds

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "text"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("LOG_LEVEL", "LOG_FORMAT", mode="before")
    @classmethod
    def _normalize_case(cls, value: Any, info) -> Any:
        if isinstance(value, str):
            return value.upper() if info.field_name == "LOG_LEVEL" else value.lower()
        return value

    @model_validator(mode="after")
    def _derive_names(self) -> "Settings":
        if not self.RESOURCE_GROUP_EAST:
            self.RESOURCE_GROUP_EAST = f"rg-aks-{self.LOCATION_EAST}"
        if not self.RESOURCE_GROUP_WEST:
            self.RESOURCE_GROUP_WEST = f"rg-aks-{self.LOCATION_WEST}"
        if not self.CLUSTER_NAME_EAST:
            self.CLUSTER_NAME_EAST = f"aks-{self.LOCATION_EAST}"
        if not self.CLUSTER_NAME_WEST:
            self.CLUSTER_NAME_WEST = f"aks-{self.LOCATION_WEST}"
        return self

    def output_path(self, name: str) -> Path:
        """Resolve a generated file name inside OUTPUT_DIR."""
        return Path(self.OUTPUT_DIR) / name

    def sites(self) -> Tuple[ClusterSite, ClusterSite]:
        """Return the (east, west) cluster sites."""
        east = ClusterSite(
            label="east",
            location=self.LOCATION_EAST,
            resource_group=self.RESOURCE_GROUP_EAST,
            cluster_name=self.CLUSTER_NAME_EAST,
            vnet_name=self.VNET_NAME_EAST,
            vnet_cidr=self.CIDR_EAST,
            subnet_name=self.SUBNET_NAME_EAST,
            subnet_prefix=self.SUBNET_PREFIX_EAST,
            kubeconfig=str(self.output_path(self.KUBECONFIG_EAST)),
        )
        west = ClusterSite(
            label="west",
            location=self.LOCATION_WEST,
            resource_group=self.RESOURCE_GROUP_WEST,
            cluster_name=self.CLUSTER_NAME_WEST,
            vnet_name=self.VNET_NAME_WEST,
            vnet_cidr=self.CIDR_WEST,
            subnet_name=self.SUBNET_NAME_WEST,
            subnet_prefix=self.SUBNET_PREFIX_WEST,
            kubeconfig=str(self.output_path(self.KUBECONFIG_WEST)),
        )
        return east, west

    @property
    def fleet_kubeconfig(self) -> str:
        return str(self.output_path(self.FLEET_KUBECONFIG))


def _read_config_file(config_file: str) -> dict[str, Any]:
    path = Path(config_file)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {config_file}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {config_file} must contain a mapping")

    values = {str(key).upper(): value for key, value in data.items()}
    unknown = sorted(set(values) - set(Settings.model_fields))
    if unknown:
        raise ConfigError(
            f"Unknown settings in {config_file}: {', '.join(key.lower() for key in unknown)}"
        )
    return values


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> Settings:
    """Build Settings from the environment, an optional YAML file and overrides.

    Args:
        config_file (str): Path to a YAML file of setting overrides. Keys are
            matched case-insensitively against the setting names; any other
            key is rejected.
        **overrides: Explicit values that win over the file and the
            environment. ``None`` values are ignored.

    Returns:
        Settings: The resolved settings.

    Raises:
        ConfigError: If the file is missing or malformed, or a value is invalid.
    """
    values: dict[str, Any] = {}
    if config_file:
        values.update(_read_config_file(config_file))
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
