"""Unit tests for ProcessHandle and EventStream."""

# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import signal
import sys
import textwrap
from pathlib import Path

import pytest

from sidecar.exceptions import SpawnError
from sidecar.supervisor.events import EventStream, Stderr, Stdout, Terminated
from sidecar.supervisor.process_handle import STREAM_LINE_LIMIT, ProcessHandle, ProcessState
from tests.helpers.engine import SLEEPING_ENGINE, STUBBORN_ENGINE

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")


def _python_handle(script: str, env: dict[str, str] | None = None) -> ProcessHandle:
    return ProcessHandle(
        program=sys.executable,
        args=["-c", textwrap.dedent(script)],
        env=env,
    )


async def _collect(stream: EventStream) -> list:
    return [event async for event in stream]


class TestEventStream:
    @pytest.mark.asyncio
    async def test_preserves_order_and_stops_on_close(self):
        stream = EventStream()
        stream.put(Stdout(b"1"))
        stream.put(Stderr(b"2"))
        stream.put(Stdout(b"3"))
        stream.close()

        assert await _collect(stream) == [Stdout(b"1"), Stderr(b"2"), Stdout(b"3")]
        # A second pass ends immediately as well
        assert await _collect(stream) == []

    def test_put_after_close_raises(self):
        stream = EventStream()
        stream.close()
        with pytest.raises(RuntimeError):
            stream.put(Stdout(b"x"))

    def test_close_is_idempotent(self):
        stream = EventStream()
        stream.close()
        stream.close()
        assert stream.closed is True


class TestStart:
    @pytest.mark.asyncio
    async def test_missing_executable_raises_spawn_error(self, tmp_path: Path):
        handle = ProcessHandle(program=str(tmp_path / "bio-engine"), args=[])

        with pytest.raises(SpawnError) as exc_info:
            await handle.start()

        assert exc_info.value.program == str(tmp_path / "bio-engine")
        assert handle.state == ProcessState.FAILED
        assert handle.process is None

    @pytest.mark.asyncio
    async def test_streams_lines_then_terminated(self):
        handle = _python_handle(
            """
            import sys
            print("one", flush=True)
            sys.stderr.write("two\\n")
            sys.stderr.flush()
            print("three", flush=True)
            sys.exit(4)
            """
        )

        events = await _collect(await handle.start())

        stdout = [e for e in events if isinstance(e, Stdout)]
        assert stdout == [Stdout(b"one"), Stdout(b"three")]
        assert Stderr(b"two") in events
        assert events[-1] == Terminated(code=4)
        assert handle.state == ProcessState.STOPPED
        assert handle.stats.exit_code == 4
        assert handle.stats.stopped_at is not None

    @pytest.mark.asyncio
    async def test_extra_env_is_added_to_inherited_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PSA_INHERITED", "kept")
        handle = _python_handle(
            """
            import os
            print(os.environ["PSA_INHERITED"], os.environ["TRACY_PATH"], flush=True)
            """,
            env={"TRACY_PATH": "/opt/tracy"},
        )

        events = await _collect(await handle.start())

        assert Stdout(b"kept /opt/tracy") in events

    @pytest.mark.asyncio
    async def test_over_long_line_is_forwarded_in_fragments(self, caplog: pytest.LogCaptureFixture):
        caplog.set_level(logging.WARNING)
        handle = _python_handle(
            f"""
            import sys
            sys.stderr.write("x" * {STREAM_LINE_LIMIT + 10} + " address already in use\\n")
            sys.stderr.write("next\\n")
            """
        )

        events = await _collect(await handle.start())

        stderr = [e.data for e in events if isinstance(e, Stderr)]
        assert len(stderr) == 3
        assert len(stderr[0]) == STREAM_LINE_LIMIT
        assert b"".join(stderr[:2]) == b"x" * (STREAM_LINE_LIMIT + 10) + b" address already in use"
        assert stderr[2] == b"next"
        assert "forwarding in fragments" in caplog.text

    @pytest.mark.asyncio
    async def test_cannot_start_twice(self):
        handle = _python_handle(SLEEPING_ENGINE)
        await handle.start()
        try:
            with pytest.raises(RuntimeError):
                await handle.start()
        finally:
            await handle.stop(timeout=5.0)


class TestExitRecording:
    def test_negative_return_code_means_signal(self):
        handle = ProcessHandle(program="bio-engine", args=[])
        handle._record_exit(-15)
        assert handle.stats.exit_code is None
        assert handle.stats.signal == 15
        assert handle.state == ProcessState.STOPPED

    def test_plain_exit_code(self):
        handle = ProcessHandle(program="bio-engine", args=[])
        handle._record_exit(0)
        assert handle.stats.exit_code == 0
        assert handle.stats.signal is None


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_without_process_is_noop(self):
        handle = ProcessHandle(program="bio-engine", args=[])
        await handle.stop()
        assert handle.is_alive() is False
        assert handle.get_pid() is None

    @posix_only
    @pytest.mark.asyncio
    async def test_stop_sends_sigterm(self):
        handle = _python_handle(SLEEPING_ENGINE)
        stream = await handle.start()
        assert await stream.__anext__() == Stdout(b"ready")

        await handle.stop(timeout=5.0)

        assert handle.is_alive() is False
        assert handle.stats.signal == signal.SIGTERM
        events = await _collect(stream)
        assert events[-1] == Terminated(code=None, signal=signal.SIGTERM)

    @posix_only
    @pytest.mark.asyncio
    async def test_stop_escalates_to_sigkill(self):
        handle = _python_handle(STUBBORN_ENGINE)
        stream = await handle.start()
        assert await stream.__anext__() == Stdout(b"armed")

        await handle.stop(timeout=0.5)

        assert handle.is_alive() is False
        assert handle.stats.signal == signal.SIGKILL
