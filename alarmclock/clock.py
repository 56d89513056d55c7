"""Time source and timers bound to the asyncio event loop."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        ...


class LoopClock:
    """Wall-clock time plus timers scheduled on one event loop.

    Every callback runs on the loop thread, so components sharing a
    LoopClock never need locks.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        # Bound at construction: call_soon_threadsafe is used from other threads
        self.loop = loop or asyncio.get_running_loop()

    def now(self) -> datetime:
        return datetime.now()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon_threadsafe(callback)
