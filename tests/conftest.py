"""Shared fakes: a manual clock, an in-memory audio backend and notification center."""

from __future__ import annotations

import itertools
import random
from datetime import datetime, timedelta

import pytest

from alarmclock import config
from alarmclock.alarm import TriggerCoordinator
from alarmclock.audio import AudioFader
from alarmclock.errors import AudioDecodeFailed, AudioLoadFailed, TriggerRegistrationFailed
from alarmclock.notifications import next_occurrence
from alarmclock.puzzle import PuzzleGate
from alarmclock.scheduler import AlarmScheduler
from alarmclock.state import StateStore

START = datetime(2026, 10, 19, 7, 58, 0)


class ManualTimer:
    def __init__(self, due: float, seq: int, callback) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Simulated time; timers only run inside advance()."""

    def __init__(self, start: datetime = START) -> None:
        self._start = start
        self.elapsed = 0.0
        self._timers: list[ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self.elapsed)

    def call_later(self, delay: float, callback) -> ManualTimer:
        timer = ManualTimer(self.elapsed + delay, next(self._seq), callback)
        self._timers.append(timer)
        return timer

    def call_soon_threadsafe(self, callback) -> None:
        callback()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.elapsed + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._timers.remove(timer)
            self.elapsed = max(self.elapsed, timer.due)
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.elapsed = target


class FakeHandle:
    def __init__(self, resource: str, loop: bool, play_result: bool = True) -> None:
        self.resource = resource
        self.loop = loop
        self.volume = 1.0
        self.volumes: list[float] = []
        self.playing = False
        self.stopped = False
        self.error = False
        self._play_result = play_result

    def __setattr__(self, name, value):
        if name == "volume" and "volumes" in self.__dict__:
            self.volumes.append(value)
        super().__setattr__(name, value)

    def play(self) -> bool:
        self.playing = self._play_result
        return self._play_result

    def stop(self) -> None:
        self.playing = False
        self.stopped = True

    def is_playing(self) -> bool:
        return self.playing

    def check(self) -> None:
        if self.error:
            raise AudioDecodeFailed(self.resource + ": corrupt frame")


class FakeBackend:
    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.missing: set[str] = set()
        self.unplayable: set[str] = set()

    def load(self, resource: str, loop: bool = False) -> FakeHandle:
        if resource in self.missing:
            raise AudioLoadFailed("No such audio file: " + resource)
        handle = FakeHandle(resource, loop, play_result=resource not in self.unplayable)
        self.handles.append(handle)
        return handle

    @property
    def last(self) -> FakeHandle:
        return self.handles[-1]


class FakeCenter:
    def __init__(self, clock: ManualClock) -> None:
        self._clock = clock
        self.triggers: dict[str, tuple[int, int, bool]] = {}
        self.added = 0
        self.fail = False
        self.permission = True
        self.sink = None
        self.started = False
        self.interactions = 0

    def set_sink(self, sink) -> None:
        self.sink = sink

    def start(self) -> None:
        self.started = True

    def shutdown(self) -> None:
        self.started = False

    async def request_permission(self) -> bool:
        return self.permission

    def add_trigger(self, identifier: str, hour: int, minute: int, repeats: bool = False) -> None:
        if self.fail:
            raise TriggerRegistrationFailed(identifier + ": scheduler unavailable")
        self.added += 1
        self.triggers[identifier] = (hour, minute, repeats)

    def remove_trigger(self, identifier: str) -> None:
        self.triggers.pop(identifier, None)

    def next_fire_time(self, identifier: str) -> datetime | None:
        if identifier not in self.triggers:
            return None
        hour, minute, _ = self.triggers[identifier]
        return next_occurrence(self._clock.now(), hour, minute)

    def user_interacted(self) -> None:
        self.interactions += 1
        self.sink.on_user_interacted()

    def fire(self) -> None:
        self.sink.on_fired()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def center(clock) -> FakeCenter:
    return FakeCenter(clock)


@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest.fixture
def fader(store, clock, backend) -> AudioFader:
    return AudioFader(store, clock, backend)


@pytest.fixture
def scheduler(store, center) -> AlarmScheduler:
    return AlarmScheduler(store, center)


@pytest.fixture
def puzzle() -> PuzzleGate:
    return PuzzleGate(random.Random(1234))


@pytest.fixture
def coordinator(store, scheduler, fader, clock, puzzle, center) -> TriggerCoordinator:
    coord = TriggerCoordinator(store, scheduler, fader, clock, puzzle)
    center.set_sink(coord)
    return coord


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setattr(config, "DATA_FILE", path)
    return path
