# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from .logging import get_logger, setup_logging, step_context
from .settings import ClusterSite, Settings, load_settings

__all__ = [
    "ClusterSite",
    "Settings",
    "get_logger",
    "load_settings",
    "setup_logging",
    "step_context",
]
