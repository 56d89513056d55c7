"""Set / cancel routes for the single alarm."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from starlette.requests import Request

from ..config import load_settings
from ..models import AlarmRequest

router = APIRouter(prefix="/api")


@router.get("/alarm")
async def get_alarm(request: Request) -> dict:
    st = request.app.state.alarmclock.store.state
    return {
        "armed": st.armed,
        "alarm": st.spec.model_dump(mode="json") if st.spec else None,
        "registration_error": st.registration_error,
    }


@router.put("/alarm")
async def set_alarm(request: Request, body: AlarmRequest) -> dict:
    svc = request.app.state.alarmclock
    settings = load_settings()

    audio_path = body.audio_path or settings.audio_path
    if not audio_path:
        raise HTTPException(400, "Select an audio file first")

    hour, minute = map(int, body.time.split(":"))
    fire_at = svc.clock.now().replace(hour=hour, minute=minute, second=0, microsecond=0)
    svc.scheduler.set(
        fire_at,
        audio_ref=audio_path,
        max_volume=body.max_volume or settings.max_volume,
        fade_in_seconds=body.fade_in_seconds or settings.fade_in_seconds,
        repeat_daily=body.repeat_daily,
    )
    st = svc.store.state
    return {
        "ok": st.registration_error is None,
        "armed": st.armed,
        "alarm": st.spec.model_dump(mode="json"),
        "registration_error": st.registration_error,
    }


@router.delete("/alarm")
async def cancel_alarm(request: Request) -> dict:
    request.app.state.alarmclock.coordinator.disable()
    return {"ok": True}
