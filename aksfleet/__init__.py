# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Provision two peered AKS clusters behind an Azure Fleet Manager hub."""

__version__ = "0.1.0"
