"""Cosmetic elapsed-time readout for a running quiz."""

from __future__ import annotations

import asyncio
from typing import Callable

__all__ = ["ElapsedTimer", "format_elapsed"]

TickCallback = Callable[[int], None]


def format_elapsed(seconds: int) -> str:
    """Format ``seconds`` as ``m:ss``."""

    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


class ElapsedTimer:
    """Counts whole seconds on the running asyncio loop.

    Has no influence on scoring. Without a running loop ``start`` only
    marks the timer as running and no ticks are produced.
    """

    def __init__(
        self, interval: float = 1.0, on_tick: TickCallback | None = None
    ) -> None:
        self._interval = interval
        self._on_tick = on_tick
        self._seconds = 0
        self._running = False
        self._handle: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def seconds(self) -> int:
        return self._seconds

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def reset(self) -> None:
        self._seconds = 0

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
            return
        self._schedule()

    def stop(self) -> None:
        self._running = False
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _schedule(self) -> None:
        if self._loop is None or not self._running:
            return
        self._handle = self._loop.call_later(self._interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if not self._running:
            return
        self._seconds += 1
        if self._on_tick is not None:
            self._on_tick(self._seconds)
        self._schedule()
