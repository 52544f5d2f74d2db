# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PS Analyzer sidecar host, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Central configuration module for the sidecar host.

Defines Pydantic models for config.json and provides
load / save helpers with a module-level singleton cache.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError, model_validator

from sidecar.exceptions import ConfigValidationError

logger = logging.getLogger("sidecar.config")

# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SystemConfig(BaseModel):
    log_level: str = "INFO"
    json_log_file: bool = True


class EngineConfig(BaseModel):
    """How the engine child is launched and observed."""

    command: str = "bio-engine"
    path: str | None = None  # explicit executable, skips lookup
    args: list[str] = []
    label: str = "bio-engine"  # prefix for relayed output
    port: int = 8000
    health_url: str = "http://127.0.0.1:8000/"
    health_retries: int = 20
    health_interval_s: float = 1.0
    health_timeout_s: float = 2.0
    terminate_timeout_s: float = 5.0

    @model_validator(mode="after")
    def _validate_ranges(self) -> EngineConfig:
        if not 0 < self.port < 65536:
            raise ValueError(f"engine.port out of range: {self.port}")
        if self.health_retries < 0:
            raise ValueError("engine.health_retries must be >= 0")
        return self


class HostConfig(BaseModel):
    resource_dir: str | None = None
    terminate_on_exit: bool = True
    exit_on_engine_exit: bool = True
    health_probe: bool = True


class SidecarConfig(BaseModel):
    version: int = 1
    system: SystemConfig = SystemConfig()
    engine: EngineConfig = EngineConfig()
    host: HostConfig = HostConfig()


# ---------------------------------------------------------------------------
# Singleton cache
# ---------------------------------------------------------------------------

_config: SidecarConfig | None = None
_config_path: Path | None = None
_config_mtime: float = 0.0


def invalidate_cache() -> None:
    """Reset the module-level singleton cache."""
    global _config, _config_path, _config_mtime
    _config = None
    _config_path = None
    _config_mtime = 0.0


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def get_config_path(data_dir: Path | None = None) -> Path:
    """Return the path to config.json inside *data_dir*.

    If *data_dir* is not given, it is resolved via ``sidecar.paths.get_data_dir``
    (imported lazily to avoid circular imports).
    """
    if data_dir is None:
        from sidecar.paths import get_data_dir

        data_dir = get_data_dir()
    return data_dir / "config.json"


# ---------------------------------------------------------------------------
# Load / Save
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> SidecarConfig:
    """Load configuration from disk, returning cached instance when possible.

    If *path* is ``None``, :func:`get_config_path` determines the location.
    When the file does not exist the default configuration is returned.

    The cache is invalidated when the file's mtime changes.

    Raises:
        ConfigValidationError: If the file is not valid JSON or does not
            match the schema.
    """
    global _config, _config_path, _config_mtime

    if path is None:
        path = get_config_path()

    if _config is not None and _config_path == path:
        try:
            disk_mtime = path.stat().st_mtime
        except OSError:
            disk_mtime = 0.0
        if disk_mtime == _config_mtime:
            return _config
        logger.debug("Config file changed on disk (mtime %.3f → %.3f); reloading", _config_mtime, disk_mtime)

    if path.is_file():
        logger.debug("Loading config from %s", path)
        try:
            data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
            config = SidecarConfig.model_validate(data)
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse %s: %s", path, exc)
            raise ConfigValidationError(f"Invalid JSON in {path}: {exc}") from exc
        except ValidationError as exc:
            logger.error("Invalid config in %s: %s", path, exc)
            raise ConfigValidationError(f"Invalid config in {path}: {exc}") from exc
    else:
        logger.info("Config file not found at %s; using defaults", path)
        config = SidecarConfig()

    _config = config
    _config_path = path
    try:
        _config_mtime = path.stat().st_mtime
    except OSError:
        _config_mtime = 0.0
    return config


def save_config(config: SidecarConfig, path: Path | None = None) -> None:
    """Persist *config* to disk as pretty-printed JSON (mode 0o600).

    Updates the module-level singleton cache so subsequent :func:`load_config`
    calls return the freshly saved config.
    """
    global _config, _config_path, _config_mtime

    if path is None:
        path = get_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    payload = config.model_dump(mode="json")
    text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")
    os.chmod(path, 0o600)

    logger.debug("Config saved to %s", path)

    _config = config
    _config_path = path
    try:
        _config_mtime = path.stat().st_mtime
    except OSError:
        _config_mtime = 0.0
