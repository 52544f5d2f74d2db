"""
Process handle for the engine child process.
"""

# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sidecar.exceptions import SpawnError
from sidecar.supervisor.events import EngineError, EventStream, Stderr, Stdout, Terminated
from sidecar.time_utils import now_local

logger = logging.getLogger(__name__)

# Engine lines can be long (tracebacks, JSON dumps); default asyncio limit is 64KB
STREAM_LINE_LIMIT = 1 * 1024 * 1024


# ── Process State ──────────────────────────────────────────────────

class ProcessState(Enum):
    """State of the child process."""
    STARTING = "starting"       # Spawn requested
    RUNNING = "running"         # OS confirmed process creation
    STOPPING = "stopping"       # Termination requested
    STOPPED = "stopped"         # Process exited
    FAILED = "failed"           # Spawn failed


@dataclass
class ProcessStats:
    """Process statistics."""
    started_at: datetime
    stopped_at: datetime | None = None
    exit_code: int | None = None
    signal: int | None = None


# ── Process Handle ──────────────────────────────────────────────────

class ProcessHandle:
    """
    Handle for the engine child process.

    Owns the OS process and the pump tasks that turn its stdout, stderr
    and exit status into :class:`EventStream` events.
    """

    def __init__(
        self,
        program: str,
        args: list[str],
        env: dict[str, str] | None = None,
        cwd: str | None = None,
    ):
        self.program = program
        self.args = list(args)
        self.env = dict(env or {})
        self.cwd = cwd

        self.state = ProcessState.STOPPED
        self.process: asyncio.subprocess.Process | None = None
        self.stats = ProcessStats(started_at=now_local())
        self.events = EventStream()
        self._pump_task: asyncio.Task | None = None

    async def start(self) -> EventStream:
        """
        Spawn the child process and start pumping its output.

        Returns:
            The event stream fed by this process.

        Raises:
            SpawnError: If the OS refuses to create the process.
        """
        if self.state not in (ProcessState.STOPPED, ProcessState.FAILED):
            raise RuntimeError(f"Cannot start process in state {self.state}")
        if self.events.closed:
            self.events = EventStream()

        self.state = ProcessState.STARTING
        self.stats = ProcessStats(started_at=now_local())

        logger.info("Starting engine: %s", self.program)
        logger.debug("Command: %s %s", self.program, " ".join(self.args))

        env = None
        if self.env:
            env = {**os.environ, **self.env}

        try:
            self.process = await asyncio.create_subprocess_exec(
                self.program,
                *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=self.cwd,
                limit=STREAM_LINE_LIMIT,
            )
        except OSError as e:
            self.state = ProcessState.FAILED
            logger.error("Failed to spawn engine %s: %s", self.program, e)
            raise SpawnError(f"Failed to spawn {self.program}: {e}", program=self.program) from e

        self.state = ProcessState.RUNNING
        logger.info("Engine started: %s (PID %s)", self.program, self.process.pid)

        self._pump_task = asyncio.create_task(
            self._pump(), name=f"engine-pump-{self.process.pid}",
        )
        return self.events

    async def _read_lines(
        self,
        reader: asyncio.StreamReader,
        wrap: type[Stdout] | type[Stderr],
    ) -> None:
        """Forward each line from *reader* as a *wrap* event.

        Lines longer than STREAM_LINE_LIMIT are forwarded in
        STREAM_LINE_LIMIT-sized fragments, one event per fragment.
        """
        while True:
            try:
                line = await reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                # EOF; partial holds a final line without a newline
                line = e.partial
            except asyncio.LimitOverrunError:
                logger.warning(
                    "Engine %s line exceeds %d bytes, forwarding in fragments",
                    wrap.__name__.lower(), STREAM_LINE_LIMIT,
                )
                line = await reader.read(STREAM_LINE_LIMIT)
            except OSError as e:
                self.events.put(EngineError(f"{wrap.__name__.lower()} read failed: {e}"))
                return
            if not line:
                return
            self.events.put(wrap(line.rstrip(b"\r\n")))

    async def _pump(self) -> None:
        """Drain both pipes, then report termination and close the stream."""
        assert self.process is not None
        proc = self.process
        try:
            await asyncio.gather(
                self._read_lines(proc.stdout, Stdout),
                self._read_lines(proc.stderr, Stderr),
            )
            returncode = await proc.wait()
            self._record_exit(returncode)
            self.events.put(Terminated(code=self.stats.exit_code, signal=self.stats.signal))
        finally:
            self.events.close()

    def _record_exit(self, returncode: int | None) -> None:
        # Negative return codes mean "killed by signal" on POSIX
        if returncode is not None and returncode < 0:
            self.stats.exit_code = None
            self.stats.signal = -returncode
        else:
            self.stats.exit_code = returncode
            self.stats.signal = None
        self.stats.stopped_at = now_local()
        self.state = ProcessState.STOPPED

    async def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the child process.

        Shutdown flow:
        1. Send SIGTERM (wait *timeout*)
        2. If still not exited, send SIGKILL

        Args:
            timeout: Grace period in seconds before escalating to SIGKILL
        """
        if not self.is_alive():
            logger.debug("Engine already stopped: %s", self.program)
            await self._join_pump(timeout)
            return

        assert self.process is not None
        logger.info("Stopping engine: %s (PID %s)", self.program, self.process.pid)
        self.state = ProcessState.STOPPING

        try:
            self.process.terminate()
        except ProcessLookupError:
            logger.debug("Engine exited before SIGTERM: %s", self.program)

        try:
            async with asyncio.timeout(timeout):
                await self.process.wait()
            logger.info("Engine terminated: %s (code=%s)", self.program, self.process.returncode)
        except asyncio.TimeoutError:
            logger.error("Engine did not respond to SIGTERM, sending SIGKILL: %s", self.program)
            await self.kill()

        await self._join_pump(timeout)

    async def kill(self) -> None:
        """Force kill the process with SIGKILL."""
        if not self.process:
            return

        logger.warning("Killing engine: %s (PID %s)", self.program, self.process.pid)
        try:
            self.process.kill()
        except ProcessLookupError:
            pass
        await self.process.wait()

    async def _join_pump(self, timeout: float) -> None:
        """Wait for the pump to report termination and close the stream."""
        if self._pump_task is None:
            return
        done, _ = await asyncio.wait({self._pump_task}, timeout=timeout)
        if not done:
            # Pipes held open by a grandchild; Terminated follows once they close
            logger.warning("Engine output pipes still open after exit: %s", self.program)

    def is_alive(self) -> bool:
        """Check if process is alive."""
        if not self.process:
            return False
        return self.process.returncode is None

    def get_pid(self) -> int | None:
        """Get process PID."""
        return self.process.pid if self.process else None
