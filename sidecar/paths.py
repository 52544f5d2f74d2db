# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PS Analyzer sidecar host, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Centralized path resolution for the sidecar host.

All modules import directory paths from here instead of computing them ad-hoc.
Runtime data directory can be overridden via PSA_DATA_DIR environment variable,
the packaged resource directory via PSA_RESOURCE_DIR.

Also resolves the optional Tracy auxiliary tool: the packaged resource
directory is searched first, then a development checkout rooted at the
current working directory.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from sidecar.exceptions import ResourceDirError

logger = logging.getLogger(__name__)

# Default runtime data directory
_DEFAULT_DATA_DIR = Path.home() / ".psanalyzer"

# ── Platform triples ───────────────────────────────────────────

PLATFORM_TRIPLES: dict[str, str] = {
    "linux": "x86_64-unknown-linux-gnu",
    "windows": "x86_64-pc-windows-msvc",
}
UNKNOWN_TRIPLE = "unknown"

AUX_TOOL_NAME = "tracy"
BINARIES_DIR = "binaries"
DEV_ROOT = "src-tauri"


def get_data_dir() -> Path:
    """Return the runtime data directory, respecting PSA_DATA_DIR env var."""
    env_val = os.environ.get("PSA_DATA_DIR")
    if env_val:
        return Path(env_val).expanduser().resolve()
    return _DEFAULT_DATA_DIR


def get_log_dir() -> Path:
    return get_data_dir() / "logs"


def get_resource_dir(configured: str | None = None) -> Path:
    """Return the packaged resource directory.

    Priority:
      1. ``PSA_RESOURCE_DIR`` environment variable
      2. *configured* (``host.resource_dir`` from config.json)
      3. Directory of the frozen executable when running from a bundle

    Raises:
        ResourceDirError: If none of the above applies (e.g. running from
            a source checkout).
    """
    env_val = os.environ.get("PSA_RESOURCE_DIR")
    if env_val:
        return Path(env_val).expanduser()
    if configured:
        return Path(configured).expanduser()
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    raise ResourceDirError("Not running from a packaged bundle; no resource directory")


def detect_platform() -> str:
    """Normalise ``sys.platform`` to a key of :data:`PLATFORM_TRIPLES`."""
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform in ("win32", "cygwin"):
        return "windows"
    return sys.platform


def target_triple(platform: str) -> str:
    """Map a platform name to its target triple, ``"unknown"`` if unsupported."""
    return PLATFORM_TRIPLES.get(platform, UNKNOWN_TRIPLE)


def aux_tool_relpath(triple: str) -> Path:
    """Relative location of the auxiliary tool binary for *triple*."""
    return Path(BINARIES_DIR) / f"{AUX_TOOL_NAME}-{triple}"


def _safe_cwd() -> Path:
    try:
        return Path.cwd()
    except OSError:
        # Working directory was removed underneath us
        return Path("")


# ── Aux tool resolution ────────────────────────────────────────


@dataclass(frozen=True)
class AuxPathConfig:
    """Result of the auxiliary tool search."""

    platform_triple: str
    resolved_path: Path | None = None

    @property
    def found(self) -> bool:
        return self.resolved_path is not None


class PathResolver:
    """Locate the Tracy auxiliary tool for the running platform.

    The packaged candidate is tried only when the resource directory can be
    obtained; the development candidate only when the packaged one was
    unavailable or missing.  Absence of both is a valid outcome.
    """

    def __init__(
        self,
        resource_dir_provider: Callable[[], Path] = get_resource_dir,
        cwd_provider: Callable[[], Path] = _safe_cwd,
    ) -> None:
        self._resource_dir_provider = resource_dir_provider
        self._cwd_provider = cwd_provider

    def resolve(self, platform: str | None = None) -> AuxPathConfig:
        triple = target_triple(platform if platform is not None else detect_platform())
        relpath = aux_tool_relpath(triple)

        try:
            resource_dir = self._resource_dir_provider()
        except ResourceDirError as e:
            logger.debug("Resource directory unavailable: %s", e)
        else:
            candidate = resource_dir / relpath
            if candidate.exists():
                logger.info("Redirecting engine to use tracy at: %s", candidate)
                return AuxPathConfig(triple, candidate)

        dev_candidate = self._cwd_provider() / DEV_ROOT / relpath
        if dev_candidate.exists():
            logger.info("Development: redirecting engine to use tracy at: %s", dev_candidate)
            return AuxPathConfig(triple, dev_candidate)

        logger.info("Tracy not found for %s; engine runs without tracing", triple)
        return AuxPathConfig(triple, None)
