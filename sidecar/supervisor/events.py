"""
Output events emitted by the engine child process.
"""

# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Union


# ── Event Types ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Stdout:
    """One line written by the child to stdout (newline stripped)."""

    data: bytes


@dataclass(frozen=True)
class Stderr:
    """One line written by the child to stderr (newline stripped)."""

    data: bytes


@dataclass(frozen=True)
class Terminated:
    """The child exited.

    ``code`` is None when the platform reports no exit code (killed by a
    signal); ``signal`` carries the signal number in that case.
    """

    code: int | None = None
    signal: int | None = None


@dataclass(frozen=True)
class EngineError:
    """Reading from the child failed; not a termination."""

    message: str


OutputEvent = Union[Stdout, Stderr, Terminated, EngineError]


def decode_output(data: bytes) -> str:
    """Decode child output, replacing invalid UTF-8 sequences."""
    return data.decode("utf-8", errors="replace")


# ── Event Stream ──────────────────────────────────────────────────

_CLOSED = object()


class EventStream:
    """Ordered async stream of :data:`OutputEvent` values.

    Producers call :meth:`put`; :meth:`close` marks the end of the stream.
    Iteration yields events in the order they were put and stops after
    the close marker.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, event: OutputEvent) -> None:
        if self._closed:
            raise RuntimeError("EventStream is closed")
        self._queue.put_nowait(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[OutputEvent]:
        return self

    async def __anext__(self) -> OutputEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so repeated iteration also stops
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    @classmethod
    def from_events(cls, events: list[OutputEvent], close: bool = True) -> EventStream:
        """Build a pre-filled stream (replay, tests)."""
        stream = cls()
        for event in events:
            stream.put(event)
        if close:
            stream.close()
        return stream
