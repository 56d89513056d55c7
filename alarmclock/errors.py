"""Exception types shared by the alarm components."""

from __future__ import annotations


class AlarmClockError(Exception):
    pass


class PermissionDenied(AlarmClockError):
    pass


class TriggerRegistrationFailed(AlarmClockError):
    pass


class AudioLoadFailed(AlarmClockError):
    pass


class AudioDecodeFailed(AlarmClockError):
    pass


class InvalidTransition(AlarmClockError):
    """Operation not allowed in the current ring state."""
