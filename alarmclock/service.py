"""Wires the alarm components around one shared state store."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .alarm import TriggerCoordinator
from .audio import AudioBackend, AudioFader
from .clock import Clock
from .models import AppState, Settings
from .notifications import NotificationCenter
from .puzzle import PuzzleGate
from .scheduler import AlarmScheduler
from .state import StateStore

logger = logging.getLogger(__name__)


@dataclass
class AlarmClock:
    store: StateStore
    clock: Clock
    center: NotificationCenter
    scheduler: AlarmScheduler
    fader: AudioFader
    coordinator: TriggerCoordinator

    @classmethod
    def build(
        cls,
        clock: Clock,
        center: NotificationCenter,
        backend: AudioBackend | None = None,
        puzzle: PuzzleGate | None = None,
        settings: Settings | None = None,
    ) -> "AlarmClock":
        settings = settings or Settings()
        store = StateStore(AppState(snooze_minutes=settings.snooze_minutes))
        store.subscribe(_log_changes)
        scheduler = AlarmScheduler(store, center)
        fader = AudioFader(store, clock, backend)
        coordinator = TriggerCoordinator(store, scheduler, fader, clock, puzzle)
        center.set_sink(coordinator)
        return cls(store, clock, center, scheduler, fader, coordinator)

    def status(self) -> dict:
        st = self.store.state
        playing = self.fader.poll()
        return {
            "state": st.ring_state.value,
            "popup_visible": st.popup_visible,
            "is_snoozed": st.is_snoozed,
            "snooze_minutes": st.snooze_minutes,
            "puzzle": st.puzzle.text if st.puzzle else None,
            "incorrect_attempts": st.incorrect_attempts,
            "playing": playing,
            "volume": self.fader.volume,
            "armed": st.armed,
            "alarm": st.spec.model_dump(mode="json") if st.spec else None,
            "registration_error": st.registration_error,
            "permission_granted": st.permission_granted,
            "next_fire_time": self.scheduler.next_fire_time(),
        }


def _log_changes(state: AppState, changed: set[str]) -> None:
    if "ring_state" in changed:
        logger.info("Ring state -> %s", state.ring_state.value)
    if "armed" in changed:
        logger.info("Alarm %s", "armed" if state.armed else "disarmed")
