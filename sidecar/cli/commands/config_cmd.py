# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import json

from sidecar.cli.commands._common import load_cli_config
from sidecar.config import get_config_path


def cmd_config(args: argparse.Namespace) -> int:
    """Print the effective configuration as JSON."""
    config = load_cli_config(args)
    if config is None:
        return 1
    print(f"# {get_config_path()}")
    print(json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False))
    return 0
