"""Countdown timer driving test expiry."""
from __future__ import annotations

import asyncio
from typing import Optional

from .events import EventChannel


def format_clock(seconds: int) -> str:
    """Render remaining seconds as ``m:ss``."""

    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


class CountdownTimer:
    """One-second countdown that signals expiry exactly once.

    ``ticks`` receives the remaining seconds after every tick and ``expired``
    receives a single ``0`` when the countdown reaches zero. After expiry or
    :meth:`cancel` further ticks are ignored.
    """

    def __init__(self, duration_seconds: int, *, tick_seconds: float = 1.0) -> None:
        if duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")
        self.duration_seconds = duration_seconds
        self.remaining = duration_seconds
        self.ticks = EventChannel("timer.tick")
        self.expired = EventChannel("timer.expired")
        self._tick_seconds = tick_seconds
        self._fired = False
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self._fired or self._cancelled

    @property
    def elapsed(self) -> int:
        return self.duration_seconds - self.remaining

    def start(self) -> None:
        if self._task is not None or self.done:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self.done:
            await asyncio.sleep(self._tick_seconds)
            self.tick()

    def tick(self) -> int:
        if self.done:
            return self.remaining
        self.remaining = max(0, self.remaining - 1)
        self.ticks.publish(self.remaining)
        if self.remaining == 0:
            self._fired = True
            self.expired.publish(0)
        return self.remaining

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


__all__ = ["CountdownTimer", "format_clock"]
