# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
"""
Engine sidecar supervisor package.

Spawns the bio-engine child process, relays its output into the host
log, and stops it when the host exits.
"""

from __future__ import annotations

from sidecar.supervisor.events import (
    EngineError,
    EventStream,
    OutputEvent,
    Stderr,
    Stdout,
    Terminated,
)
from sidecar.supervisor.health import EngineHealthProbe
from sidecar.supervisor.manager import (
    Invocation,
    ProcessSupervisor,
    get_supervisor,
    reset_supervisor,
)
from sidecar.supervisor.monitor import EventMonitor, MonitorState
from sidecar.supervisor.process_handle import ProcessHandle, ProcessState, ProcessStats

__all__ = [
    "EngineError",
    "EngineHealthProbe",
    "EventMonitor",
    "EventStream",
    "Invocation",
    "MonitorState",
    "OutputEvent",
    "ProcessHandle",
    "ProcessState",
    "ProcessStats",
    "ProcessSupervisor",
    "Stderr",
    "Stdout",
    "Terminated",
    "get_supervisor",
    "reset_supervisor",
]
