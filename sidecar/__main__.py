# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

import sys

from sidecar.cli.parser import cli_main

sys.exit(cli_main())
