# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PS Analyzer sidecar host, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Host application: wires path resolution, the engine supervisor, the
output monitor and exit handling onto one asyncio loop.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import signal

from sidecar.config import SidecarConfig
from sidecar.lifecycle import ExitSignal, ShutdownCoordinator
from sidecar.logging_config import bind_engine_context
from sidecar.paths import AuxPathConfig, PathResolver, get_resource_dir
from sidecar.supervisor.events import EventStream
from sidecar.supervisor.health import EngineHealthProbe
from sidecar.supervisor.manager import ProcessSupervisor, get_supervisor

logger = logging.getLogger(__name__)

_EXIT_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


class HostApplication:
    """Run the engine sidecar for the lifetime of the host.

    Startup fails fast: if the engine cannot be spawned, :meth:`start`
    raises :class:`~sidecar.exceptions.SpawnError` before any monitoring
    begins.
    """

    def __init__(
        self,
        config: SidecarConfig,
        resolver: PathResolver | None = None,
        supervisor: ProcessSupervisor | None = None,
        exit_signal: ExitSignal | None = None,
    ):
        self.config = config
        self.resolver = resolver or PathResolver(
            resource_dir_provider=functools.partial(
                get_resource_dir, config.host.resource_dir,
            ),
        )
        self.supervisor = supervisor or get_supervisor(
            config.engine, config.host.resource_dir,
        )
        self.exit_signal = exit_signal or ExitSignal()
        self.coordinator = ShutdownCoordinator(
            self.exit_signal,
            self.supervisor,
            terminate_child=config.host.terminate_on_exit,
        )
        self.aux: AuxPathConfig | None = None
        self._tasks: list[asyncio.Task] = []
        self._coordinator_task: asyncio.Task | None = None
        self._monitor_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Resolve Tracy, spawn the engine and start background tasks."""
        # The coordinator subscribes first so an early exit still cleans up
        self._coordinator_task = asyncio.create_task(
            self.coordinator.run(), name="shutdown-coordinator",
        )

        self.aux = self.resolver.resolve()
        try:
            handle, stream = await self.supervisor.spawn(self.aux)
        except Exception:
            self._coordinator_task.cancel()
            raise

        if self.exit_signal.is_set and self.coordinator.completed and self.coordinator.terminate_child:
            # Exit arrived mid-spawn, after the coordinator found no engine to stop
            await self.supervisor.shutdown()

        bind_engine_context(engine=self.config.engine.label, engine_pid=handle.get_pid())

        self._monitor_task = asyncio.create_task(
            self._monitor(stream), name="engine-monitor",
        )
        self._tasks.append(self._monitor_task)

        if self.config.host.health_probe:
            engine = self.config.engine
            probe = EngineHealthProbe(
                engine.health_url,
                retries=engine.health_retries,
                interval=engine.health_interval_s,
                timeout=engine.health_timeout_s,
            )
            self._tasks.append(
                asyncio.create_task(probe.wait_until_ready(), name="engine-health"),
            )

    async def _monitor(self, stream: EventStream) -> None:
        await self.supervisor.monitor_stream(stream)
        if self.config.host.exit_on_engine_exit:
            self.exit_signal.fire("engine exited")

    def install_signal_handlers(self) -> None:
        """Route OS termination signals to the exit signal."""
        loop = asyncio.get_running_loop()
        for name in _EXIT_SIGNALS:
            sig = getattr(signal, name, None)
            if sig is None:
                continue
            try:
                loop.add_signal_handler(sig, self.exit_signal.fire, name)
            except NotImplementedError:
                # Windows event loops have no add_signal_handler
                signal.signal(
                    sig,
                    lambda _signum, _frame, reason=name: loop.call_soon_threadsafe(
                        self.exit_signal.fire, reason,
                    ),
                )

    async def run(self) -> int:
        """Start, wait for the exit signal, clean up.

        Returns:
            Process exit status for the host. When the engine stopping
            caused the exit this is its non-zero exit code, or 128 plus the
            signal number if a signal killed it. Otherwise 0.
        """
        self.install_signal_handlers()
        await self.start()

        await self.exit_signal.wait()
        if self._coordinator_task is not None:
            await self._coordinator_task

        if self._monitor_task is not None:
            # Let the monitor log the engine's exit before tearing down
            await asyncio.wait(
                {self._monitor_task}, timeout=self.config.engine.terminate_timeout_s,
            )
        for task in self._tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

        monitor = self.supervisor.monitor
        if (
            self.exit_signal.reason == "engine exited"
            and monitor is not None
            and monitor.terminated is not None
        ):
            if monitor.terminated.code:
                return monitor.terminated.code
            if monitor.terminated.signal:
                return 128 + monitor.terminated.signal
        return 0
