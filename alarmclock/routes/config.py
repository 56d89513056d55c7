"""Settings routes + audio test playback."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError
from starlette.requests import Request

from ..config import load_settings, save_settings
from ..models import Settings

router = APIRouter(prefix="/api/config")


@router.get("")
async def get_config() -> dict:
    return load_settings().model_dump()


@router.put("")
async def update_config(request: Request, body: dict) -> dict:
    data = load_settings().model_dump()
    data.update(body)
    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise HTTPException(422, str(e))
    save_settings(settings)
    request.app.state.alarmclock.store.update(snooze_minutes=settings.snooze_minutes)
    return settings.model_dump()


@router.post("/test-audio")
async def test_audio(request: Request, body: dict) -> dict:
    """Play the selected song once, at full volume."""
    path = body.get("path") or load_settings().audio_path
    if not path:
        return {"ok": False, "error": "No audio file selected"}
    if not request.app.state.alarmclock.fader.play(path, loop=False):
        return {"ok": False, "error": "Could not play " + path}
    return {"ok": True}


@router.post("/test-audio/stop")
async def stop_test_audio(request: Request) -> dict:
    request.app.state.alarmclock.fader.stop()
    return {"ok": True}


@router.get("/test-audio/status")
async def test_audio_status(request: Request) -> dict:
    return {"playing": request.app.state.alarmclock.fader.poll()}


@router.post("/test-audio/volume")
async def set_test_volume(request: Request, body: dict) -> dict:
    volume = float(body.get("volume", 1.0))
    request.app.state.alarmclock.fader.set_volume(volume)
    return {"ok": True}
