# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import asyncio
import logging

from sidecar.cli.commands._common import load_cli_config, resolve_log_level
from sidecar.exceptions import SpawnError
from sidecar.logging_config import setup_logging
from sidecar.paths import get_log_dir

logger = logging.getLogger("sidecar")


def cmd_run(args: argparse.Namespace) -> int:
    """Run the host until the exit signal; 1 when the engine fails to spawn."""
    config = load_cli_config(args)
    setup_logging(
        level=resolve_log_level(args, config),
        log_dir=get_log_dir(),
        json_file=config.system.json_log_file if config else True,
    )
    if config is None:
        return 1

    from sidecar.app import HostApplication

    app = HostApplication(config)
    try:
        return asyncio.run(app.run())
    except SpawnError as exc:
        logger.critical("Engine startup failed, aborting: %s", exc)
        return 1
