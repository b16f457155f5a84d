# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from .azure import AzureCli
from .kubectl import KubeCtl
from .shell import Runner, run_command

__all__ = ["AzureCli", "KubeCtl", "Runner", "run_command"]
