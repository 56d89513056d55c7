"""Audio playback via subprocess (mpv/ffplay/vlc) + timer-driven fade-in."""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from .clock import Clock, TimerHandle
from .config import PLAYER_OVERRIDE
from .errors import AudioDecodeFailed, AudioLoadFailed
from .models import FADE_STEPS, PlaybackState
from .state import StateStore

logger = logging.getLogger(__name__)

# Player commands in priority order: (binary, base_args, loop_args)
_PLAYERS = [
    ("mpv", ["--no-video", "--no-terminal"], ["--loop-file=inf"]),
    ("ffplay", ["-nodisp", "-autoexit", "-loglevel", "quiet"], ["-loop", "0"]),
    ("vlc", ["--intf", "dummy", "--no-video", "--play-and-exit"], ["--loop"]),
]


class PlaybackHandle(Protocol):
    volume: float

    def play(self) -> bool:
        ...

    def stop(self) -> None:
        ...

    def is_playing(self) -> bool:
        ...

    def check(self) -> None:
        """Raise AudioDecodeFailed if playback ended in an error."""


class AudioBackend(Protocol):
    def load(self, resource: str, loop: bool = False) -> PlaybackHandle:
        ...


def _find_player() -> tuple[str, list[str], list[str]] | None:
    for binary, base, loop_args in _PLAYERS:
        if PLAYER_OVERRIDE and binary != PLAYER_OVERRIDE:
            continue
        if shutil.which(binary):
            return binary, base, loop_args
    return None


def _set_volume(percent: int) -> None:
    system = platform.system()
    try:
        if system == "Darwin":
            subprocess.run(
                ["osascript", "-e", "set volume output volume " + str(percent)],
                capture_output=True,
                timeout=3,
            )
        else:
            # Linux (PulseAudio)
            subprocess.run(
                ["pactl", "set-sink-volume", "@DEFAULT_SINK@", str(percent) + "%"],
                capture_output=True,
                timeout=3,
            )
    except (OSError, subprocess.SubprocessError):
        logger.debug("Volume set failed (no pactl/osascript?)")


def _get_volume() -> int | None:
    """Current output volume in percent, or None when it can't be read."""
    system = platform.system()
    try:
        if system == "Darwin":
            result = subprocess.run(
                ["osascript", "-e", "output volume of (get volume settings)"],
                capture_output=True,
                text=True,
                timeout=3,
            )
            return int(result.stdout.strip())
        result = subprocess.run(
            ["pactl", "get-sink-volume", "@DEFAULT_SINK@"],
            capture_output=True,
            text=True,
            timeout=3,
        )
    except (OSError, subprocess.SubprocessError, ValueError):
        logger.debug("Volume read failed (no pactl/osascript?)")
        return None
    # Output like: Volume: front-left: 28835 /  44% / -7.13 dB, ...
    for part in result.stdout.split("/"):
        part = part.strip()
        if part.endswith("%"):
            try:
                return int(part[:-1].strip())
            except ValueError:
                pass
    return None


class SubprocessHandle:
    """One player process for one audio file."""

    def __init__(self, cmd: list[str], name: str) -> None:
        self._cmd = cmd
        self._name = name
        self._process: subprocess.Popen | None = None
        self._volume = 1.0
        self._volume_set = False
        self._saved_volume: int | None = None

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        percent = int(round(value * 100))
        if not self._volume_set:
            self._saved_volume = _get_volume()
            self._volume_set = True
            _set_volume(percent)
        elif percent != int(round(self._volume * 100)):
            _set_volume(percent)
        self._volume = value

    def play(self) -> bool:
        try:
            self._process = subprocess.Popen(
                self._cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error("Failed to start %s: %s", self._cmd[0], e)
            self._process = None
            return False
        return True

    def stop(self) -> None:
        """Stop the player and put the output volume back where it was."""
        if self._process is not None:
            try:
                self._process.terminate()
                self._process.wait(timeout=3)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait()
            except OSError:
                logger.debug("Player process already gone")
            self._process = None

        if self._volume_set and self._saved_volume is not None:
            _set_volume(self._saved_volume)
        self._volume_set = False
        self._saved_volume = None

    def is_playing(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def check(self) -> None:
        code = self._process.poll() if self._process is not None else None
        if code not in (None, 0):
            raise AudioDecodeFailed(f"{self._name}: player exited with code {code}")


class SubprocessBackend:
    def load(self, resource: str, loop: bool = False) -> SubprocessHandle:
        path = Path(resource).expanduser()
        if not path.is_file():
            raise AudioLoadFailed("No such audio file: " + str(path))

        player = _find_player()
        if not player:
            raise AudioLoadFailed(
                "No audio player found. Install one: brew install mpv (or ffmpeg)"
            )

        binary, base_args, loop_args = player
        cmd = [binary] + base_args + (loop_args if loop else []) + [str(path)]
        return SubprocessHandle(cmd, path.name)


class AudioFader:
    """Owns the single playback handle and the fade-in ramp timer."""

    def __init__(self, store: StateStore, clock: Clock, backend: AudioBackend | None = None) -> None:
        self._store = store
        self._clock = clock
        self._backend = backend or SubprocessBackend()
        self._handle: PlaybackHandle | None = None
        self._fade_timer: TimerHandle | None = None
        self._fade_step = 0
        self._fade_target = 0.0
        self._fade_interval = 0.0

    @property
    def is_playing(self) -> bool:
        return self._store.state.playback.is_playing

    @property
    def volume(self) -> float:
        return self._store.state.playback.current_volume

    @property
    def fading(self) -> bool:
        return self._fade_timer is not None

    def play(self, resource: str, loop: bool = False) -> bool:
        """Start playback at full volume. Returns False on failure."""
        self.stop()
        handle = self._open(resource, loop)
        if handle is None:
            return False

        handle.volume = 1.0
        if not handle.play():
            logger.error("Failed to start audio playback")
            handle.stop()
            return False

        self._handle = handle
        self._set_playback(True, 1.0)
        logger.info("Playing audio: %s (loop: %s)", Path(resource).name, loop)
        return True

    def play_with_fade_in(self, resource: str, target_volume: float, duration_seconds: float) -> bool:
        """Loop `resource` from silence up to target_volume in FADE_STEPS steps."""
        if not 0.0 < target_volume <= 1.0:
            raise ValueError("target_volume must be in (0, 1]")
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")

        self.stop()
        handle = self._open(resource, loop=True)
        if handle is None:
            return False

        handle.volume = 0.0
        if not handle.play():
            logger.error("Failed to start audio playback")
            handle.stop()
            return False

        self._handle = handle
        self._set_playback(True, 0.0)
        logger.info(
            "Playing audio with fade-in: %s (target %d%%, %ds)",
            Path(resource).name, int(target_volume * 100), int(duration_seconds),
        )

        self._fade_step = 0
        self._fade_target = target_volume
        self._fade_interval = duration_seconds / FADE_STEPS
        self._fade_timer = self._clock.call_later(self._fade_interval, self._fade_tick)
        return True

    def stop(self) -> None:
        if self._fade_timer is not None:
            self._fade_timer.cancel()
            self._fade_timer = None

        if self._handle is None and not self.is_playing:
            return

        if self._handle is not None:
            self._handle.stop()
            self._handle = None
            logger.info("Audio stopped")
        self._set_playback(False, 0.0)

    def set_volume(self, volume: float) -> None:
        """Direct override; a running fade overwrites it on its next step."""
        if self._handle is None:
            return
        volume = min(max(volume, 0.0), 1.0)
        self._handle.volume = volume
        self._set_playback(True, volume)

    def poll(self) -> bool:
        """Reconcile the playing flag with the handle. Returns is_playing."""
        handle = self._handle
        if handle is None or handle.is_playing():
            return self.is_playing

        try:
            handle.check()
        except AudioDecodeFailed as e:
            logger.error("Audio decode error: %s", e)
        else:
            logger.info("Audio finished playing")
        handle.stop()
        if self._fade_timer is not None:
            self._fade_timer.cancel()
            self._fade_timer = None
        self._handle = None
        self._set_playback(False, 0.0)
        return False

    def _open(self, resource: str, loop: bool) -> PlaybackHandle | None:
        try:
            return self._backend.load(resource, loop=loop)
        except AudioLoadFailed as e:
            logger.error("Failed to play audio: %s", e)
            self._set_playback(False, 0.0)
            return None

    def _fade_tick(self) -> None:
        self._fade_timer = None
        if self._handle is None or not self.poll():
            return

        self._fade_step += 1
        if self._fade_step >= FADE_STEPS:
            volume = self._fade_target
            logger.info("Fade-in complete at %d%%", int(volume * 100))
        else:
            volume = min(self._fade_target / FADE_STEPS * self._fade_step, self._fade_target)
            self._fade_timer = self._clock.call_later(self._fade_interval, self._fade_tick)

        self._handle.volume = volume
        self._set_playback(True, volume)

    def _set_playback(self, is_playing: bool, volume: float) -> None:
        self._store.update(playback=PlaybackState(is_playing=is_playing, current_volume=volume))
