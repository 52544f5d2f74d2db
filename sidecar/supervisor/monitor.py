"""
Event monitor - relays engine output into the host log.
"""

# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from enum import Enum

from sidecar.logging_config import ENGINE_LOGGER_NAME
from sidecar.supervisor.events import (
    EventStream,
    OutputEvent,
    Stderr,
    Stdout,
    Terminated,
    decode_output,
)

logger = logging.getLogger(ENGINE_LOGGER_NAME)

PORT_CONFLICT_MARKER = "address already in use"
DEFAULT_ENGINE_PORT = 8000


class MonitorState(Enum):
    MONITORING = "monitoring"
    STOPPED = "stopped"


class EventMonitor:
    """
    Consume an :class:`EventStream` until the engine terminates.

    stdout lines are logged at INFO, stderr lines at ERROR. A stderr line
    containing ``"address already in use"`` additionally raises a CRITICAL
    port-conflict diagnostic; the engine is left alone either way.
    """

    def __init__(self, engine_label: str = "bio-engine", port: int = DEFAULT_ENGINE_PORT):
        self.engine_label = engine_label
        self.port = port
        self.state = MonitorState.MONITORING
        self.terminated: Terminated | None = None
        self.port_conflict = False

    async def run(self, stream: EventStream) -> None:
        async for event in stream:
            self.handle(event)
            if isinstance(event, Terminated):
                break
        self.state = MonitorState.STOPPED

    def handle(self, event: OutputEvent) -> None:
        if isinstance(event, Stdout):
            logger.info("%s: %s", self.engine_label, decode_output(event.data))
        elif isinstance(event, Stderr):
            text = decode_output(event.data)
            logger.error("%s error: %s", self.engine_label, text)
            if PORT_CONFLICT_MARKER in text:
                self.port_conflict = True
                logger.critical(
                    "Port %d is occupied. Please ensure no other PS Analyzer instance is running.",
                    self.port,
                )
        elif isinstance(event, Terminated):
            self.terminated = event
            if event.signal is not None:
                logger.info(
                    "%s terminated with code: %s (signal %d)",
                    self.engine_label, event.code, event.signal,
                )
            else:
                logger.info("%s terminated with code: %s", self.engine_label, event.code)
