"""Unit tests for ExitSignal and ShutdownCoordinator."""

# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from sidecar.exceptions import ProcessError
from sidecar.lifecycle import ExitSignal, ShutdownCoordinator


def _mock_supervisor() -> MagicMock:
    supervisor = MagicMock()
    supervisor.shutdown = AsyncMock()
    return supervisor


class TestExitSignal:
    @pytest.mark.asyncio
    async def test_wakes_every_subscriber(self):
        exit_signal = ExitSignal()
        waiters = [asyncio.create_task(exit_signal.wait()) for _ in range(3)]
        await asyncio.sleep(0)
        assert not any(w.done() for w in waiters)

        exit_signal.fire("SIGTERM")

        assert await asyncio.gather(*waiters) == ["SIGTERM"] * 3

    @pytest.mark.asyncio
    async def test_first_reason_wins(self):
        exit_signal = ExitSignal()
        exit_signal.fire("SIGINT")
        exit_signal.fire("engine exited")

        assert exit_signal.is_set is True
        assert await exit_signal.wait() == "SIGINT"


class TestShutdownCoordinator:
    @pytest.mark.asyncio
    async def test_waits_for_signal_then_stops_engine(self, caplog: pytest.LogCaptureFixture):
        caplog.set_level(logging.INFO)
        exit_signal = ExitSignal()
        supervisor = _mock_supervisor()
        coordinator = ShutdownCoordinator(exit_signal, supervisor)

        task = asyncio.create_task(coordinator.run())
        await asyncio.sleep(0)
        supervisor.shutdown.assert_not_awaited()

        exit_signal.fire("SIGTERM")
        await task

        supervisor.shutdown.assert_awaited_once()
        assert coordinator.completed is True
        assert any(
            "Application exiting (SIGTERM), cleaning up processes..." in r.getMessage()
            for r in caplog.records
        )

    @pytest.mark.asyncio
    async def test_confirm_only_mode(self):
        exit_signal = ExitSignal()
        supervisor = _mock_supervisor()
        coordinator = ShutdownCoordinator(exit_signal, supervisor, terminate_child=False)

        exit_signal.fire()
        await coordinator.run()

        supervisor.shutdown.assert_not_awaited()
        assert coordinator.completed is True

    @pytest.mark.asyncio
    async def test_termination_failure_is_logged_not_raised(self, caplog: pytest.LogCaptureFixture):
        exit_signal = ExitSignal()
        supervisor = _mock_supervisor()
        supervisor.shutdown.side_effect = ProcessError("boom")
        coordinator = ShutdownCoordinator(exit_signal, supervisor)

        exit_signal.fire()
        await coordinator.run()

        assert coordinator.completed is True
        assert any(r.levelno == logging.ERROR and "Failed to stop engine" in r.getMessage() for r in caplog.records)
