"""Pydantic models for the alarm clock."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

ALARM_IDENTIFIER = "alarmclock.alarm"
FADE_STEPS = 100


class RingState(str, Enum):
    IDLE = "idle"
    RINGING = "ringing"
    SNOOZED = "snoozed"
    SOLVING_PUZZLE = "solving_puzzle"


class AlarmSpec(BaseModel):
    fire_at: datetime  # only hour:minute is matched
    audio_ref: Optional[str] = None
    max_volume: float = Field(default=1.0, gt=0.0, le=1.0)
    fade_in_seconds: float = Field(default=30.0, gt=0.0)
    repeat_daily: bool = False


class PlaybackState(BaseModel):
    is_playing: bool = False
    current_volume: float = 0.0


class PuzzleChallenge(BaseModel):
    operand_a: int
    operand_b: int
    operator: Literal["+", "-"]
    expected_answer: int

    @property
    def text(self) -> str:
        return f"{self.operand_a} {self.operator} {self.operand_b} = ?"


class Settings(BaseModel):
    """User defaults persisted in the settings file."""
    audio_path: str = ""
    max_volume: float = Field(default=1.0, ge=0.1, le=1.0)
    fade_in_seconds: float = Field(default=30.0, ge=5.0, le=120.0)
    snooze_minutes: int = Field(default=5, ge=1, le=30)


class AlarmRequest(BaseModel):
    time: str = Field(pattern=r"^([01]?\d|2[0-3]):[0-5]\d$")  # HH:MM, 24-hour
    audio_path: Optional[str] = None
    max_volume: Optional[float] = Field(default=None, gt=0.0, le=1.0)
    fade_in_seconds: Optional[float] = Field(default=None, gt=0.0)
    repeat_daily: bool = False


class AppState(BaseModel):
    armed: bool = False
    spec: Optional[AlarmSpec] = None
    registration_error: Optional[str] = None
    ring_state: RingState = RingState.IDLE
    is_snoozed: bool = False
    puzzle: Optional[PuzzleChallenge] = None
    incorrect_attempts: int = 0
    playback: PlaybackState = Field(default_factory=PlaybackState)
    permission_granted: Optional[bool] = None
    snooze_minutes: int = 5

    @property
    def popup_visible(self) -> bool:
        return self.ring_state != RingState.IDLE
