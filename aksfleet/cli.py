# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Command-line entry point: ``aks-fleet {deploy|cleanup}``."""

import argparse
import sys
from typing import List, Optional

from aksfleet.config.logging import get_logger, setup_logging
from aksfleet.config.settings import load_settings
from aksfleet.deployment import FleetDeployment
from aksfleet.errors import ConfigError

logger = get_logger(__name__)

ACTIONS = ("deploy", "cleanup")

DESCRIPTION = """\
Deploy two AKS clusters in the East and West US regions, peer their virtual
networks, configure them with Azure Fleet Manager, and deploy a demo
application across both clusters.

Requires the Azure CLI (with the 'fleet' extension) and kubectl.

Commands:
  deploy     Set up AKS clusters, peer the VNets, configure Fleet Manager, and deploy the demo application.
  cleanup    Tear down the AKS clusters, VNet peering, and Fleet Manager resources.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aks-fleet",
        usage="%(prog)s {deploy|cleanup} [options]",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("action", nargs="?", help="deploy or cleanup")
    parser.add_argument("--config", help="YAML file with setting overrides")
    parser.add_argument("--output-dir", help="Directory for kubeconfig and manifest files")
    parser.add_argument(
        "--multi-cluster-service",
        action="store_true",
        default=None,
        help="Also create a MultiClusterService for the demo front end",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Render logs as JSON")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the requested action and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.action not in ACTIONS:
        parser.print_help(sys.stderr)
        return 1

    try:
        settings = load_settings(
            args.config,
            OUTPUT_DIR=args.output_dir,
            CREATE_MULTI_CLUSTER_SERVICE=args.multi_cluster_service,
            LOG_LEVEL="DEBUG" if args.debug else None,
            LOG_FORMAT="json" if args.json_logs else None,
        )
    except ConfigError as e:
        setup_logging("INFO", json_logs=args.json_logs)
        logger.error(str(e))
        return 1

    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_FORMAT == "json")

    deployment = FleetDeployment(settings)
    if args.action == "deploy":
        success = deployment.deploy()
    else:
        success = deployment.cleanup()
    return 0 if success else 1


def main():
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
