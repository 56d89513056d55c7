"""Status, stop/puzzle, snooze and popup routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from starlette.requests import Request

from ..errors import InvalidTransition

router = APIRouter(prefix="/api")


@router.get("/status")
async def get_status(request: Request) -> dict:
    return request.app.state.alarmclock.status()


@router.post("/stop")
async def request_stop(request: Request) -> dict:
    """'I'm awake': show the puzzle that must be solved to stop the alarm."""
    svc = request.app.state.alarmclock
    try:
        svc.coordinator.request_stop()
    except InvalidTransition as e:
        raise HTTPException(400, str(e))
    return {"ok": True, "puzzle": svc.store.state.puzzle.text}


@router.post("/puzzle/answer")
async def submit_answer(request: Request, body: dict) -> dict:
    svc = request.app.state.alarmclock
    answer = str(body.get("answer", ""))
    try:
        solved = svc.coordinator.submit_answer(answer)
    except InvalidTransition as e:
        raise HTTPException(400, str(e))
    st = svc.store.state
    return {
        "ok": solved,
        "state": st.ring_state.value,
        "incorrect_attempts": st.incorrect_attempts,
    }


@router.post("/snooze")
async def snooze_alarm(request: Request, body: dict | None = None) -> dict:
    svc = request.app.state.alarmclock
    try:
        raw = (body or {}).get("minutes")
        minutes = int(raw) if raw is not None else svc.store.state.snooze_minutes
        fire_at = svc.coordinator.snooze(minutes)
    except InvalidTransition as e:
        raise HTTPException(400, str(e))
    except ValueError as e:
        raise HTTPException(422, str(e))
    return {"ok": True, "snooze_minutes": minutes, "fire_at": fire_at.isoformat()}


@router.post("/close")
async def close_popup(request: Request) -> dict:
    """Close the snoozed popup; the snoozed alarm stays armed."""
    try:
        request.app.state.alarmclock.coordinator.close_popup()
    except InvalidTransition as e:
        raise HTTPException(400, str(e))
    return {"ok": True}


@router.post("/dismiss")
async def dismiss_popup(request: Request) -> dict:
    request.app.state.alarmclock.coordinator.dismiss_popup()
    return {"ok": True}


@router.post("/notification/interacted")
async def notification_interacted(request: Request) -> dict:
    request.app.state.alarmclock.center.user_interacted()
    return {"ok": True}
