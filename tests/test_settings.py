# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from aksfleet.config.settings import Settings, load_settings
from aksfleet.errors import ConfigError


class TestSettings(unittest.TestCase):
    """Test cases for deployment settings."""

    def setUp(self):
        # Keep the developer's environment out of the defaults
        self.env = patch.dict(os.environ)
        self.env.start()
        for name in Settings.model_fields:
            os.environ.pop(name, None)
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()
        self.env.stop()

    def write_config(self, data) -> str:
        path = Path(self.tmp.name) / "config.yml"
        path.write_text(data if isinstance(data, str) else yaml.dump(data))
        return str(path)

    def test_defaults_match_reference_environment(self):
        settings = Settings(_env_file=None)

        self.assertEqual(settings.LOCATION_EAST, "eastus2")
        self.assertEqual(settings.LOCATION_WEST, "westus2")
        self.assertEqual(settings.RESOURCE_GROUP_EAST, "rg-aks-eastus2")
        self.assertEqual(settings.RESOURCE_GROUP_WEST, "rg-aks-westus2")
        self.assertEqual(settings.CLUSTER_NAME_EAST, "aks-eastus2")
        self.assertEqual(settings.CLUSTER_NAME_WEST, "aks-westus2")
        self.assertEqual(settings.FLEET_RESOURCE_GROUP_NAME, "rg-fleet")
        self.assertEqual(settings.FLEET, "gbb-fleet")
        self.assertEqual(settings.FLEET_LOCATION, "westus")
        self.assertEqual(settings.CIDR_EAST, "10.1.0.0/16")
        self.assertEqual(settings.CIDR_WEST, "10.2.0.0/16")
        self.assertFalse(settings.CREATE_MULTI_CLUSTER_SERVICE)
        self.assertIsNone(settings.COMMAND_TIMEOUT)

    def test_derived_names_follow_location(self):
        settings = Settings(_env_file=None, LOCATION_EAST="eastus", LOCATION_WEST="westeurope")

        self.assertEqual(settings.RESOURCE_GROUP_EAST, "rg-aks-eastus")
        self.assertEqual(settings.CLUSTER_NAME_WEST, "aks-westeurope")

    def test_explicit_names_are_kept(self):
        settings = Settings(_env_file=None, RESOURCE_GROUP_EAST="my-rg")

        self.assertEqual(settings.RESOURCE_GROUP_EAST, "my-rg")
        self.assertEqual(settings.RESOURCE_GROUP_WEST, "rg-aks-westus2")

    def test_environment_overrides(self):
        os.environ["FLEET"] = "team-fleet"
        os.environ["LOCATION_WEST"] = "centralus"

        settings = Settings(_env_file=None)

        self.assertEqual(settings.FLEET, "team-fleet")
        self.assertEqual(settings.CLUSTER_NAME_WEST, "aks-centralus")

    def test_sites(self):
        settings = Settings(_env_file=None, OUTPUT_DIR="/work")
        east, west = settings.sites()

        self.assertEqual(east.label, "east")
        self.assertEqual(east.vnet_name, "aks-vnet-east")
        self.assertEqual(east.subnet_prefix, "10.1.0.0/24")
        self.assertEqual(east.kubeconfig, str(Path("/work") / "east-aks"))
        self.assertEqual(west.subnet_name, "aks-subnet-west")
        self.assertEqual(west.vnet_cidr, "10.2.0.0/16")
        self.assertEqual(settings.fleet_kubeconfig, str(Path("/work") / "fleet"))

    def test_config_file_loading(self):
        config_file = self.write_config({"fleet": "yaml-fleet", "location_east": "eastus"})

        settings = load_settings(config_file)

        self.assertEqual(settings.FLEET, "yaml-fleet")
        self.assertEqual(settings.RESOURCE_GROUP_EAST, "rg-aks-eastus")
        # Default values should still be present
        self.assertEqual(settings.FLEET_LOCATION, "westus")

    def test_overrides_beat_config_file(self):
        config_file = self.write_config({"OUTPUT_DIR": "/from-file"})

        settings = load_settings(config_file, OUTPUT_DIR="/from-cli", LOG_LEVEL=None)

        self.assertEqual(settings.OUTPUT_DIR, "/from-cli")
        self.assertEqual(settings.LOG_LEVEL, "INFO")

    def test_empty_config_file(self):
        settings = load_settings(self.write_config(""))
        self.assertEqual(settings.FLEET, "gbb-fleet")

    def test_missing_config_file(self):
        with self.assertRaises(ConfigError):
            load_settings(str(Path(self.tmp.name) / "missing.yml"))

    def test_config_file_must_be_mapping(self):
        with self.assertRaises(ConfigError):
            load_settings(self.write_config("- just\n- a list\n"))

    def test_invalid_yaml(self):
        with self.assertRaises(ConfigError):
            load_settings(self.write_config("fleet: [unclosed\n"))

    def test_invalid_value(self):
        with self.assertRaises(ConfigError):
            load_settings(COMMAND_TIMEOUT="soon")

    def test_invalid_log_level(self):
        with self.assertRaises(ConfigError):
            load_settings(LOG_LEVEL="VERBOSE")

    def test_invalid_log_level_from_environment(self):
        os.environ["LOG_LEVEL"] = "verbose"

        with self.assertRaises(ConfigError):
            load_settings()

    def test_invalid_log_format(self):
        with self.assertRaises(ConfigError):
            load_settings(LOG_FORMAT="xml")

    def test_log_settings_are_case_insensitive(self):
        settings = load_settings(LOG_LEVEL="debug", LOG_FORMAT="JSON")

        self.assertEqual(settings.LOG_LEVEL, "DEBUG")
        self.assertEqual(settings.LOG_FORMAT, "json")

    def test_unknown_config_key(self):
        config_file = self.write_config({"fleet": "yaml-fleet", "fleet_locaton": "eastus"})

        with self.assertRaises(ConfigError) as ctx:
            load_settings(config_file)

        self.assertIn("fleet_locaton", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
