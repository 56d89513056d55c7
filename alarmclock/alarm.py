"""Alarm ringing state machine / orchestrator."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from .audio import AudioFader
from .clock import Clock
from .errors import InvalidTransition
from .models import AlarmSpec, RingState
from .puzzle import PuzzleGate
from .scheduler import AlarmScheduler
from .state import StateStore

logger = logging.getLogger(__name__)


class TriggerCoordinator:
    """Receives fired events and drives ringing -> snoozed / puzzle -> idle."""

    def __init__(
        self,
        store: StateStore,
        scheduler: AlarmScheduler,
        fader: AudioFader,
        clock: Clock,
        puzzle: PuzzleGate | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._fader = fader
        self._clock = clock
        self._puzzle = puzzle or PuzzleGate()
        self._ringing_spec: AlarmSpec | None = None
        # pending snooze trigger, and the daily alarm it temporarily replaced
        self._snooze_spec: AlarmSpec | None = None
        self._resume_spec: AlarmSpec | None = None

    @property
    def ring_state(self) -> RingState:
        return self._store.state.ring_state

    def on_fired(self) -> None:
        """Called on the loop thread when the host trigger fires."""
        spec = self._scheduler.spec
        if not self._scheduler.armed or spec is None:
            logger.warning("Trigger fired but no alarm is armed, ignoring")
            return
        if self.ring_state in (RingState.RINGING, RingState.SOLVING_PUZZLE):
            logger.warning("Alarm already ringing, ignoring trigger")
            return

        logger.info("Alarm triggered (%02d:%02d)", spec.fire_at.hour, spec.fire_at.minute)
        if spec is not self._snooze_spec:
            self._snooze_spec = self._resume_spec = None
        self._ringing_spec = spec
        self._scheduler.consume()

        if spec.audio_ref:
            self._fader.play_with_fade_in(spec.audio_ref, spec.max_volume, spec.fade_in_seconds)
        else:
            logger.warning("No audio selected, ringing silently")

        self._store.update(
            ring_state=RingState.RINGING,
            is_snoozed=False,
            puzzle=None,
            incorrect_attempts=0,
        )

    def on_user_interacted(self) -> None:
        logger.info("User interacted with notification")

    def request_stop(self) -> None:
        """Show a fresh puzzle; solving it dismisses the alarm."""
        if self.ring_state not in (RingState.RINGING, RingState.SNOOZED):
            raise InvalidTransition("No ringing or snoozed alarm to stop")
        challenge = self._puzzle.generate()
        logger.info("Puzzle shown: %s", challenge.text)
        self._store.update(
            ring_state=RingState.SOLVING_PUZZLE,
            puzzle=challenge,
            incorrect_attempts=0,
        )

    def submit_answer(self, answer: str | int) -> bool:
        st = self._store.state
        if st.ring_state != RingState.SOLVING_PUZZLE or st.puzzle is None:
            raise InvalidTransition("No puzzle to solve")

        if not self._puzzle.check(st.puzzle, answer):
            logger.info("Incorrect puzzle answer")
            self._store.update(incorrect_attempts=st.incorrect_attempts + 1)
            return False

        logger.info("Puzzle solved, dismissing alarm")
        self._fader.stop()
        # "stop alarm completely" also drops a pending snooze
        self._finish_snooze(drop_pending=True)
        self._reset()
        return True

    def snooze(self, minutes: int | None = None) -> datetime:
        """Silence the ring and re-arm the alarm `minutes` from now."""
        if self.ring_state != RingState.RINGING:
            raise InvalidTransition("No ringing alarm to snooze")
        if minutes is None:
            minutes = self._store.state.snooze_minutes
        if minutes <= 0:
            raise ValueError("Snooze minutes must be positive")

        spec = self._ringing_spec
        if spec is not None and spec.repeat_daily:
            self._resume_spec = spec
        self._fader.stop()

        fire_at = self._clock.now() + timedelta(minutes=minutes)
        self._scheduler.set(
            fire_at,
            audio_ref=spec.audio_ref if spec else None,
            max_volume=spec.max_volume if spec else 1.0,
            fade_in_seconds=spec.fade_in_seconds if spec else 30.0,
        )
        self._snooze_spec = self._scheduler.spec
        self._store.update(ring_state=RingState.SNOOZED, is_snoozed=True)
        logger.info("Alarm snoozed for %d minutes", minutes)
        return fire_at

    def close_popup(self) -> None:
        """Close the snoozed popup; the rescheduled alarm stays armed."""
        if self.ring_state != RingState.SNOOZED:
            raise InvalidTransition("Alarm is not snoozed")
        self._fader.stop()
        self._reset()

    def dismiss_popup(self) -> None:
        """Popup closed without solving: make sure nothing keeps playing."""
        if self.ring_state == RingState.IDLE:
            return
        logger.info("Alarm popup dismissed (%s)", self.ring_state.value)
        self._fader.stop()
        self._finish_snooze(drop_pending=False)
        self._reset()

    def disable(self) -> None:
        """Cancel the armed alarm and silence anything ringing."""
        self._snooze_spec = self._resume_spec = None
        self._scheduler.cancel()
        self._fader.stop()
        self.dismiss_popup()

    def _finish_snooze(self, drop_pending: bool) -> None:
        """End a snooze episode: bring back the daily alarm or drop the snooze.

        With drop_pending False a snooze trigger that has not fired yet is
        left alone.
        """
        snooze = self._snooze_spec
        if snooze is None or self._scheduler.spec is not snooze:
            self._snooze_spec = self._resume_spec = None
            return
        if self._scheduler.armed and not drop_pending:
            return

        resume = self._resume_spec
        self._snooze_spec = self._resume_spec = None
        if resume is not None:
            self._scheduler.set(
                resume.fire_at,
                audio_ref=resume.audio_ref,
                max_volume=resume.max_volume,
                fade_in_seconds=resume.fade_in_seconds,
                repeat_daily=True,
            )
            logger.info(
                "Daily alarm restored for %02d:%02d", resume.fire_at.hour, resume.fire_at.minute
            )
        elif self._scheduler.armed:
            self._scheduler.cancel()

    def _reset(self) -> None:
        self._ringing_spec = None
        self._store.update(
            ring_state=RingState.IDLE,
            is_snoozed=False,
            puzzle=None,
            incorrect_attempts=0,
        )
