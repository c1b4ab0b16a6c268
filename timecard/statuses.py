"""Status enumerations for epochs, events and time records."""

from __future__ import annotations

from enum import IntEnum


class _LabelledStatus(IntEnum):
    """Integer status whose text form is its name."""

    def __str__(self) -> str:
        return self.name

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class EpochStatus(_LabelledStatus):
    """Lifecycle of a worked period between two time records."""

    PENDING = 1
    COMPLETED = 2
    PROCESSED = 3
    FAILED = 4


class EventStatus(_LabelledStatus):
    """Lifecycle of an incoming event."""

    PENDING = 1
    COMPLETED = 2
    FAILED = 3


class TimeRecordStatus(_LabelledStatus):
    """Review state of a single time record."""

    PENDING = 1
    APPROVED = 2
    REFUSED = 3