# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from typing import Iterable, Optional

import pytest

from aksfleet.config.settings import Settings
from aksfleet.errors import CommandError

FAKE_IDS = {
    "account": "00000000-0000-0000-0000-000000000000",
    "subnet_east": "/subscriptions/sub/resourceGroups/rg-aks-eastus2/providers/Microsoft.Network/virtualNetworks/aks-vnet-east/subnets/aks-subnet-east",
    "subnet_west": "/subscriptions/sub/resourceGroups/rg-aks-westus2/providers/Microsoft.Network/virtualNetworks/aks-vnet-west/subnets/aks-subnet-west",
    "vnet_east": "/subscriptions/sub/resourceGroups/rg-aks-eastus2/providers/Microsoft.Network/virtualNetworks/aks-vnet-east",
    "vnet_west": "/subscriptions/sub/resourceGroups/rg-aks-westus2/providers/Microsoft.Network/virtualNetworks/aks-vnet-west",
    "cluster_east": "/subscriptions/sub/resourceGroups/rg-aks-eastus2/providers/Microsoft.ContainerService/managedClusters/aks-eastus2",
    "cluster_west": "/subscriptions/sub/resourceGroups/rg-aks-westus2/providers/Microsoft.ContainerService/managedClusters/aks-westus2",
    "fleet": "/subscriptions/sub/resourceGroups/rg-fleet/providers/Microsoft.ContainerService/fleets/gbb-fleet",
    "user": "11111111-1111-1111-1111-111111111111",
}

# First rule whose tokens all appear in the command wins
DEFAULT_RESPONSES = [
    (("account", "show"), FAKE_IDS["account"]),
    (("subnet", "show", "aks-subnet-east"), FAKE_IDS["subnet_east"]),
    (("subnet", "show", "aks-subnet-west"), FAKE_IDS["subnet_west"]),
    (("vnet", "show", "aks-vnet-east"), FAKE_IDS["vnet_east"]),
    (("vnet", "show", "aks-vnet-west"), FAKE_IDS["vnet_west"]),
    (("aks", "show", "aks-eastus2"), FAKE_IDS["cluster_east"]),
    (("aks", "show", "aks-westus2"), FAKE_IDS["cluster_west"]),
    (("fleet", "show"), FAKE_IDS["fleet"]),
    (("signed-in-user", "show"), FAKE_IDS["user"]),
    (("get", "namespace", "--ignore-not-found"), ""),
    (("get", "clusterresourceplacement"), "NAME             GEN   SCHEDULED   AVAILABLE\naks-store-demo   1     True        True"),
    (("get", "serviceexport"), "NAME          IS-VALID   IS-CONFLICTED\nstore-front   True       False"),
]


class CommandRecorder:
    """Stand-in for run_command that records every command it is given."""

    def __init__(self, responses=None):
        self.responses = list(responses if responses is not None else DEFAULT_RESPONSES)
        self.failures: list[tuple[str, ...]] = []
        self.calls: list[dict] = []
        self.ids = dict(FAKE_IDS)

    def fail_on(self, *tokens: str):
        """Make every command containing all ``tokens`` exit non-zero."""
        self.failures.append(tokens)

    @staticmethod
    def _matches(command: list, tokens: Iterable[str]) -> bool:
        # "!token" means the token must be absent
        return all(
            token[1:] not in command if token.startswith("!") else token in command
            for token in tokens
        )

    def __call__(self, command, capture_output=False, env=None, cwd=None, timeout=None) -> Optional[str]:
        command = list(command)
        self.calls.append({"command": command, "env": env, "timeout": timeout})
        for tokens in self.failures:
            if self._matches(command, tokens):
                raise CommandError(command, 1, "simulated failure")
        if not capture_output:
            return None
        for tokens, output in self.responses:
            if self._matches(command, tokens):
                return output
        return ""

    @property
    def commands(self) -> list:
        return [call["command"] for call in self.calls]


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    for name in Settings.model_fields:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def recorder():
    return CommandRecorder()


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, OUTPUT_DIR=str(tmp_path))
