"""Alarm Clock - local web UI for a fading, puzzle-gated alarm."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from starlette.requests import Request

from .audio import AudioBackend
from .clock import Clock, LoopClock
from .config import load_settings
from .notifications import NotificationCenter, SchedulerNotificationCenter
from .routes import alarm as alarm_router
from .routes import config as config_router
from .routes import status as status_router
from .service import AlarmClock

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

BASE_DIR = Path(__file__).parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def create_app(
    clock: Clock | None = None,
    center: NotificationCenter | None = None,
    backend: AudioBackend | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        loop_clock = clock or LoopClock()
        notifier = center or SchedulerNotificationCenter(loop_clock)
        svc = AlarmClock.build(loop_clock, notifier, backend, settings=load_settings())
        app.state.alarmclock = svc
        notifier.start()
        await svc.scheduler.request_permission()
        yield
        svc.fader.stop()
        notifier.shutdown()

    app = FastAPI(title="Alarm Clock", lifespan=lifespan)

    app.include_router(alarm_router.router)
    app.include_router(config_router.router)
    app.include_router(status_router.router)

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request):
        return templates.TemplateResponse(
            request, "index.html", {"settings": load_settings()}
        )

    return app


app = create_app()
