"""JSON file persistence for user settings + environment overrides."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from .models import Settings

logger = logging.getLogger(__name__)

DATA_FILE = Path(os.environ.get("ALARMCLOCK_DATA", Path(__file__).parent / "settings.json"))

# Force one player binary (mpv, ffplay or vlc) instead of auto-detection
PLAYER_OVERRIDE = os.environ.get("ALARMCLOCK_PLAYER", "")


def _load_raw() -> dict:
    if not DATA_FILE.exists():
        return {}
    try:
        return json.loads(DATA_FILE.read_text())
    except (OSError, ValueError):
        logger.exception("Failed to load %s", DATA_FILE.name)
        return {}


def _save_raw(data: dict) -> None:
    DATA_FILE.write_text(json.dumps(data, indent=2) + "\n")


def load_settings() -> Settings:
    raw = _load_raw().get("settings", {})
    try:
        return Settings.model_validate(raw)
    except ValidationError:
        logger.exception("Invalid settings in %s, using defaults", DATA_FILE.name)
        return Settings()


def save_settings(settings: Settings) -> None:
    data = _load_raw()
    data["settings"] = settings.model_dump()
    _save_raw(data)
