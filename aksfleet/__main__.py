# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from aksfleet.cli import main

main()
