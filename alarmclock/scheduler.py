"""Single pending alarm, delegated to the host notification subsystem."""

from __future__ import annotations

import logging
from datetime import datetime

from .errors import TriggerRegistrationFailed
from .models import ALARM_IDENTIFIER, AlarmSpec
from .notifications import NotificationCenter
from .state import StateStore

logger = logging.getLogger(__name__)


class AlarmScheduler:
    def __init__(self, store: StateStore, center: NotificationCenter) -> None:
        self._store = store
        self._center = center

    @property
    def armed(self) -> bool:
        return self._store.state.armed

    @property
    def spec(self) -> AlarmSpec | None:
        return self._store.state.spec

    async def request_permission(self) -> bool:
        """Ask the host for notification permission. Denial is only logged."""
        granted = await self._center.request_permission()
        if not granted:
            logger.warning("Notifications not permitted; alarms will still be scheduled")
        self._store.update(permission_granted=granted)
        return granted

    def set(
        self,
        time: datetime,
        audio_ref: str | None = None,
        max_volume: float = 1.0,
        fade_in_seconds: float = 30.0,
        repeat_daily: bool = False,
    ) -> None:
        """Arm the alarm for time's hour:minute, replacing any previous one.

        Registration failures are logged and recorded in
        ``registration_error``; the alarm still counts as armed.
        """
        spec = AlarmSpec(
            fire_at=time,
            audio_ref=audio_ref,
            max_volume=max_volume,
            fade_in_seconds=fade_in_seconds,
            repeat_daily=repeat_daily,
        )
        self._store.update(spec=spec, armed=True, registration_error=None)
        logger.info(
            "Alarm set for %02d:%02d (max volume %d%%, fade-in %ds, audio %s)",
            time.hour, time.minute, int(max_volume * 100), int(fade_in_seconds),
            audio_ref or "none",
        )

        self._center.remove_trigger(ALARM_IDENTIFIER)
        try:
            self._center.add_trigger(
                ALARM_IDENTIFIER, time.hour, time.minute, repeats=repeat_daily
            )
        except TriggerRegistrationFailed as e:
            logger.error("Failed to schedule alarm trigger: %s", e)
            self._store.update(registration_error=str(e))

    def cancel(self) -> None:
        self._store.update(armed=False, spec=None, registration_error=None)
        self._center.remove_trigger(ALARM_IDENTIFIER)
        logger.info("Alarm disabled")

    def consume(self) -> None:
        """Mark a ring-once alarm as spent after it fired."""
        spec = self.spec
        if spec is not None and not spec.repeat_daily:
            self._store.update(armed=False)

    def next_fire_time(self) -> str | None:
        if not self.armed:
            return None
        when = self._center.next_fire_time(ALARM_IDENTIFIER)
        return when.isoformat() if when else None
