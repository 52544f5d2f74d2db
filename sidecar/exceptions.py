from __future__ import annotations
# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PS Analyzer sidecar host, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Unified exception hierarchy for the sidecar host.

All domain-specific exceptions derive from :class:`SidecarError`,
enabling callers to catch the entire family with a single clause::

    try:
        ...
    except SidecarError as e:
        logger.error("Sidecar error: %s", e)
"""


class SidecarError(Exception):
    """Base exception for all sidecar host errors."""


# ── Process ──────────────────────────────────────────────────


class ProcessError(SidecarError):
    """Child process lifecycle errors."""


class SpawnError(ProcessError):
    """The engine child process could not be started.

    Fatal: the host cannot run without its engine, so startup aborts.
    """

    def __init__(self, message: str, *, program: str = "") -> None:
        super().__init__(message)
        self.program = program


# ── Paths ────────────────────────────────────────────────────


class PathError(SidecarError):
    """Path resolution errors."""


class ResourceDirError(PathError):
    """The packaged resource directory could not be determined."""


# ── Configuration ────────────────────────────────────────────


class ConfigError(SidecarError):
    """Configuration errors."""


class ConfigValidationError(ConfigError):
    """Configuration validation failure."""
