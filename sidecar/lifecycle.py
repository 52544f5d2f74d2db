# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PS Analyzer sidecar host, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Host exit signalling and engine cleanup on exit.

``ExitSignal`` is the host's single "application exiting" broadcast: one
producer fires it, any number of subscribers await it.
``ShutdownCoordinator`` subscribes to it and makes sure the engine child
does not outlive the host.  Python has no runtime layer that reaps shell
children on exit, so the coordinator terminates the engine itself.
"""

from __future__ import annotations

import asyncio
import logging

from sidecar.exceptions import ProcessError
from sidecar.supervisor.manager import ProcessSupervisor

logger = logging.getLogger(__name__)


class ExitSignal:
    """One-shot broadcast of the host's exit."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def fire(self, reason: str = "exit") -> None:
        """Raise the signal. Later calls keep the first reason."""
        if self._event.is_set():
            return
        self.reason = reason
        logger.debug("Exit signal raised: %s", reason)
        self._event.set()

    async def wait(self) -> str:
        await self._event.wait()
        return self.reason or "exit"


class ShutdownCoordinator:
    """Confirm host exit and stop the engine child."""

    def __init__(
        self,
        exit_signal: ExitSignal,
        supervisor: ProcessSupervisor,
        terminate_child: bool = True,
    ):
        self.exit_signal = exit_signal
        self.supervisor = supervisor
        self.terminate_child = terminate_child
        self.completed = False

    async def run(self) -> None:
        reason = await self.exit_signal.wait()
        logger.info("Application exiting (%s), cleaning up processes...", reason)

        if self.terminate_child:
            try:
                await self.supervisor.shutdown()
            except (ProcessError, OSError):
                logger.exception("Failed to stop engine during exit")

        self.completed = True
