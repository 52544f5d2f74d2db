# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import logging
import os

from pydantic import ValidationError

from sidecar.config import SidecarConfig, load_config
from sidecar.exceptions import ConfigError

logger = logging.getLogger("sidecar")


def load_cli_config(args: argparse.Namespace) -> SidecarConfig | None:
    """Load config.json and apply command-line overrides.

    Returns None (after logging) when the config file or an override is
    invalid.
    """
    try:
        config = load_config()
    except ConfigError as exc:
        logger.error("%s", exc)
        return None

    # Never mutate the cached instance
    config = config.model_copy(deep=True)
    if getattr(args, "resource_dir", None):
        config.host.resource_dir = args.resource_dir
    if getattr(args, "engine", None):
        config.engine.path = args.engine
    if getattr(args, "port", None) is not None:
        config.engine.port = args.port
        config.engine.health_url = f"http://127.0.0.1:{args.port}/"
    if getattr(args, "no_health_probe", False):
        config.host.health_probe = False

    # Attribute assignment skips validation; re-check the overridden values
    try:
        return SidecarConfig.model_validate(config.model_dump())
    except ValidationError as exc:
        logger.error("Invalid command-line override: %s", exc)
        return None


def resolve_log_level(args: argparse.Namespace, config: SidecarConfig | None) -> str:
    if args.log_level:
        return args.log_level
    env_level = os.environ.get("PSA_LOG_LEVEL")
    if env_level:
        return env_level
    return config.system.log_level if config else "INFO"
