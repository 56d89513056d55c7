"""Host notification subsystem: APScheduler triggers + desktop banners."""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from datetime import datetime, timedelta
from typing import Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from .clock import Clock
from .errors import PermissionDenied, TriggerRegistrationFailed

logger = logging.getLogger(__name__)

BANNER_TITLE = "Alarm"
BANNER_BODY = "Time to wake up!"


class NotificationSink(Protocol):
    def on_fired(self) -> None:
        ...

    def on_user_interacted(self) -> None:
        ...


class NotificationCenter(Protocol):
    def set_sink(self, sink: NotificationSink) -> None:
        ...

    def start(self) -> None:
        ...

    def shutdown(self) -> None:
        ...

    def user_interacted(self) -> None:
        ...

    async def request_permission(self) -> bool:
        ...

    def add_trigger(self, identifier: str, hour: int, minute: int, repeats: bool = False) -> None:
        ...

    def remove_trigger(self, identifier: str) -> None:
        ...

    def next_fire_time(self, identifier: str) -> datetime | None:
        ...


def next_occurrence(now: datetime, hour: int, minute: int) -> datetime:
    """First datetime strictly after `now` whose time of day is hour:minute."""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def _banner_command(title: str, body: str) -> list[str] | None:
    if platform.system() == "Darwin":
        if not shutil.which("osascript"):
            return None
        script = f'display notification "{body}" with title "{title}" sound name "default"'
        return ["osascript", "-e", script]
    if not shutil.which("notify-send"):
        return None
    return ["notify-send", "--urgency=critical", title, body]


class SchedulerNotificationCenter:
    """Triggers backed by an AsyncIOScheduler.

    Jobs run in the scheduler's executor, so fired events are handed back
    to the event loop thread with call_soon_threadsafe before the sink is
    touched.
    """

    def __init__(self, clock: Clock, scheduler: AsyncIOScheduler | None = None) -> None:
        self._clock = clock
        self.scheduler = scheduler or AsyncIOScheduler()
        self._sink: NotificationSink | None = None

    def set_sink(self, sink: NotificationSink) -> None:
        self._sink = sink

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    async def request_permission(self) -> bool:
        try:
            self._check_permission()
        except PermissionDenied as e:
            logger.warning("Notification permission denied: %s", e)
            return False
        logger.info("Notification permission granted")
        return True

    def _check_permission(self) -> None:
        if _banner_command(BANNER_TITLE, BANNER_BODY) is None:
            raise PermissionDenied("no desktop notification tool (notify-send/osascript)")

    def add_trigger(self, identifier: str, hour: int, minute: int, repeats: bool = False) -> None:
        if repeats:
            trigger = CronTrigger(hour=hour, minute=minute, second=0)
        else:
            trigger = DateTrigger(run_date=next_occurrence(self._clock.now(), hour, minute))
        try:
            self.scheduler.add_job(self._deliver, trigger, id=identifier, replace_existing=True)
        except Exception as e:
            raise TriggerRegistrationFailed(f"{identifier}: {e}") from e
        logger.info("Trigger %s registered for %02d:%02d (repeats: %s)", identifier, hour, minute, repeats)

    def remove_trigger(self, identifier: str) -> None:
        try:
            self.scheduler.remove_job(identifier)
        except JobLookupError:
            return
        logger.info("Trigger %s cancelled", identifier)

    def next_fire_time(self, identifier: str) -> datetime | None:
        job = self.scheduler.get_job(identifier)
        if job is None:
            return None
        return getattr(job, "next_run_time", None)

    def user_interacted(self) -> None:
        self._clock.call_soon_threadsafe(self._interacted)

    def _deliver(self) -> None:
        self._clock.call_soon_threadsafe(self._fire)

    def _fire(self) -> None:
        logger.info("Trigger fired")
        self._post_banner()
        if self._sink is not None:
            self._sink.on_fired()

    def _interacted(self) -> None:
        if self._sink is not None:
            self._sink.on_user_interacted()

    def _post_banner(self) -> None:
        cmd = _banner_command(BANNER_TITLE, BANNER_BODY)
        if cmd is None:
            return
        try:
            subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError:
            logger.debug("Could not post desktop notification")
