# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from sidecar.config.models import (
    EngineConfig,
    HostConfig,
    SidecarConfig,
    SystemConfig,
    get_config_path,
    invalidate_cache,
    load_config,
    save_config,
)

__all__ = [
    "EngineConfig",
    "HostConfig",
    "SidecarConfig",
    "SystemConfig",
    "get_config_path",
    "invalidate_cache",
    "load_config",
    "save_config",
]
