"""
Process Supervisor - launches the engine sidecar and owns its handle.
"""

# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import shutil
import sys
from dataclasses import dataclass, field

from sidecar.config import EngineConfig
from sidecar.exceptions import ProcessError, ResourceDirError
from sidecar.paths import AuxPathConfig, get_resource_dir
from sidecar.supervisor.events import EventStream
from sidecar.supervisor.monitor import EventMonitor
from sidecar.supervisor.process_handle import ProcessHandle, ProcessState

logger = logging.getLogger(__name__)

ENGINE_COMMAND = "bio-engine"
TRACY_ENV_VAR = "TRACY_PATH"
TRACY_ARG_FLAG = "--tracy-path"


# ── Invocation ─────────────────────────────────────────────────────

@dataclass
class Invocation:
    """Command line for the engine child.

    ``env`` only holds variables added on top of the inherited environment.
    """
    program: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)


def _executable_name(command: str) -> str:
    if sys.platform == "win32" and not command.lower().endswith(".exe"):
        return f"{command}.exe"
    return command


def resolve_engine_program(
    command: str = ENGINE_COMMAND,
    explicit_path: str | None = None,
    resource_dir: str | None = None,
) -> str:
    """Locate the engine executable the way the packaged app lays it out.

    Priority:
      1. *explicit_path* (``engine.path`` in config)
      2. Bundled next to the resource directory / frozen executable
      3. ``PATH`` lookup
      4. The bare command name (spawning will then fail loudly)
    """
    if explicit_path:
        return explicit_path

    name = _executable_name(command)
    try:
        bundled = get_resource_dir(resource_dir) / name
    except ResourceDirError:
        bundled = None
    if bundled is not None and bundled.is_file():
        return str(bundled)

    found = shutil.which(name)
    if found:
        return found
    return command


# ── Process Supervisor ─────────────────────────────────────────────

class ProcessSupervisor:
    """
    Supervisor for the engine child process.

    Responsibilities:
    - Build the engine invocation from the Tracy resolution
    - Spawn the child (fail fast, no retry)
    - Hand the event stream to an :class:`EventMonitor`
    - Terminate the child on shutdown

    No restart policy: a crashed engine stays down and its exit code
    is logged.
    """

    def __init__(
        self,
        engine_config: EngineConfig | None = None,
        resource_dir: str | None = None,
    ):
        self.engine_config = engine_config or EngineConfig()
        self.resource_dir = resource_dir
        self.handle: ProcessHandle | None = None
        self.monitor: EventMonitor | None = None

    def build_invocation(self, aux: AuxPathConfig) -> Invocation:
        """Build the engine command line, adding Tracy wiring when resolved."""
        cfg = self.engine_config
        program = resolve_engine_program(cfg.command, cfg.path, self.resource_dir)
        invocation = Invocation(program=program, args=list(cfg.args))

        if aux.resolved_path is not None:
            tracy_path = str(aux.resolved_path)
            invocation.env[TRACY_ENV_VAR] = tracy_path
            invocation.args.extend([TRACY_ARG_FLAG, tracy_path])

        return invocation

    async def spawn(self, aux: AuxPathConfig) -> tuple[ProcessHandle, EventStream]:
        """
        Spawn the engine.

        Returns:
            The owned handle and the stream of its output events

        Raises:
            SpawnError: If the engine could not be started (fatal)
            ProcessError: If an engine is already running
        """
        if self.handle is not None and self.handle.is_alive():
            raise ProcessError(
                f"Engine already running (PID {self.handle.get_pid()})"
            )

        invocation = self.build_invocation(aux)
        handle = ProcessHandle(
            program=invocation.program,
            args=invocation.args,
            env=invocation.env,
        )
        stream = await handle.start()
        self.handle = handle
        return handle, stream

    async def monitor_stream(self, stream: EventStream) -> None:
        """Relay *stream* into the log until the engine terminates."""
        cfg = self.engine_config
        self.monitor = EventMonitor(engine_label=cfg.label, port=cfg.port)
        await self.monitor.run(stream)

    async def shutdown(self, timeout: float | None = None) -> None:
        """Terminate the engine if it is still running."""
        if self.handle is None:
            logger.debug("No engine to shut down")
            return
        if timeout is None:
            timeout = self.engine_config.terminate_timeout_s
        await self.handle.stop(timeout=timeout)

    def get_status(self) -> dict:
        """Get engine status."""
        handle = self.handle
        if handle is None:
            return {"status": "not_started"}

        return {
            "status": handle.state.value,
            "pid": handle.get_pid(),
            "program": handle.program,
            "args": list(handle.args),
            "tracy_path": handle.env.get(TRACY_ENV_VAR),
            "started_at": handle.stats.started_at.isoformat(),
            "stopped_at": (
                handle.stats.stopped_at.isoformat() if handle.stats.stopped_at else None
            ),
            "exit_code": handle.stats.exit_code,
            "signal": handle.stats.signal,
            "port_conflict": bool(self.monitor and self.monitor.port_conflict),
            "running": handle.state == ProcessState.RUNNING and handle.is_alive(),
        }


# ── Singleton ──────────────────────────────────────────────────────

_supervisor: ProcessSupervisor | None = None


def get_supervisor(
    engine_config: EngineConfig | None = None,
    resource_dir: str | None = None,
) -> ProcessSupervisor:
    """Return the process-wide supervisor, creating it on first use."""
    global _supervisor
    if _supervisor is None:
        _supervisor = ProcessSupervisor(engine_config, resource_dir)
    return _supervisor


def reset_supervisor() -> None:
    """Drop the singleton (tests, re-initialisation)."""
    global _supervisor
    _supervisor = None
