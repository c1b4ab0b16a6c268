"""Payloads of the events the timecard service consumes, decoded from JSON."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, TypeVar

from .entities import ValidationError, _check_required, _check_uuid, _is_timezone
from .utils import is_clock

_TIMESTAMP_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)


class SchemaError(ValueError):
    """Raised when an event payload cannot be decoded or fails validation."""


def _load(data: bytes | bytearray | str) -> Mapping[str, Any]:
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SchemaError(f"invalid JSON payload: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise SchemaError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SchemaError(f"{key}: expected a string, got {type(value).__name__}")
    return value


def _integer(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{key}: expected an integer, got {value!r}")
    return value


def _timestamp(data: Mapping[str, Any], key: str) -> datetime | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SchemaError(f"{key}: expected an RFC 3339 timestamp, got {value!r}")
    match = _TIMESTAMP_PATTERN.fullmatch(value)
    if match is None:
        raise SchemaError(f"{key}: {value!r} is not an RFC 3339 timestamp")
    year, month, day, hour, minute, second = (int(part) for part in match.group(1, 2, 3, 4, 5, 6))
    micros = int((match.group(7) or "")[:6].ljust(6, "0"))
    zone = match.group(8)
    try:
        if zone == "Z":
            offset = timedelta(0)
        else:
            sign = -1 if zone[0] == "-" else 1
            offset = sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        parsed = datetime(year, month, day, hour, minute, second, micros, tzinfo=timezone(offset))
    except ValueError as exc:
        raise SchemaError(f"{key}: {value!r} is not a valid timestamp") from exc
    if not offset and parsed.replace(tzinfo=None) == datetime(1, 1, 1):
        return None
    return parsed


_N = TypeVar("_N", bound="_Base")


def _nested(data: Mapping[str, Any], key: str, kind: type[_N]) -> _N | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise SchemaError(f"{key}: expected a JSON object, got {type(value).__name__}")
    return kind(**kind._decode(value))


@dataclass(kw_only=True)
class _Base:
    id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "id": _string(data, "id"),
            "created_at": _timestamp(data, "created_at"),
            "updated_at": _timestamp(data, "updated_at"),
        }

    def _validate(self) -> None:
        _check_uuid("id", self.id)
        _check_required("created_at", self.created_at)


@dataclass(kw_only=True)
class Company(_Base):
    """A company as carried in an event payload."""


@dataclass(kw_only=True)
class Employee(_Base):
    """An employee as carried in an event payload."""


@dataclass(kw_only=True)
class WorkScale(_Base):
    """A work scale as carried in an event payload."""

    company_id: str = ""

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {**super()._decode(data), "company_id": _string(data, "company_id")}

    def _validate(self) -> None:
        super()._validate()
        _check_uuid("company_id", self.company_id)


@dataclass(kw_only=True)
class Clock(_Base):
    """A scheduled clock as carried in an event payload."""

    clock_type: int = 0
    clock: str = ""
    timezone: str = ""
    work_scale_id: str = ""

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            **super()._decode(data),
            "clock_type": _integer(data, "type"),
            "clock": _string(data, "clock"),
            "timezone": _string(data, "timezone"),
            "work_scale_id": _string(data, "work_scale_id"),
        }

    def _validate(self) -> None:
        super()._validate()
        if not self.clock_type:
            raise ValidationError("type: non zero value required")
        _check_required("clock", self.clock)
        if not is_clock(self.clock):
            raise ValidationError(f"clock: {self.clock} does not validate as clock")
        _check_required("timezone", self.timezone)
        if not _is_timezone(self.timezone):
            raise ValidationError(f"timezone: {self.timezone} does not validate as timezone")
        _check_uuid("work_scale_id", self.work_scale_id)


_E = TypeVar("_E", bound="Event")


def _parse(cls: type[_E], data: bytes | bytearray | str) -> _E:
    event = cls(**cls._decode(_load(data)))
    try:
        event._validate()
    except ValidationError as exc:
        raise SchemaError(str(exc)) from exc
    return event


@dataclass(kw_only=True)
class Event:
    """Envelope shared by every event: its identifier."""

    id: str = ""

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {"id": _string(data, "id")}

    def _validate(self) -> None:
        _check_uuid("id", self.id)

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> Event:
        """Decode a JSON payload into an event envelope and validate it."""
        return _parse(cls, data)


@dataclass(kw_only=True)
class EmployeeEvent(Event):
    """A new employee was registered."""

    employee: Employee | None = None

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {**super()._decode(data), "employee": _nested(data, "employee", Employee)}

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> EmployeeEvent:
        """Decode a JSON payload into an employee event and validate it."""
        return _parse(cls, data)


@dataclass(kw_only=True)
class CompanyEvent(Event):
    """A new company was registered."""

    company: Company | None = None

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {**super()._decode(data), "company": _nested(data, "company", Company)}

    def _validate(self) -> None:
        super()._validate()
        _check_required("company", self.company)
        self.company._validate()

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> CompanyEvent:
        """Decode a JSON payload into a company event and validate it."""
        return _parse(cls, data)


@dataclass(kw_only=True)
class CompanyEmployeeEvent(Event):
    """An employee joined a company."""

    company_id: str = ""
    employee_id: str = ""

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            **super()._decode(data),
            "company_id": _string(data, "company_id"),
            "employee_id": _string(data, "employee_id"),
        }

    def _validate(self) -> None:
        super()._validate()
        _check_uuid("company_id", self.company_id)
        _check_uuid("employee_id", self.employee_id)

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> CompanyEmployeeEvent:
        """Decode a JSON payload into a company-employee event and validate it."""
        return _parse(cls, data)


@dataclass(kw_only=True)
class WorkScaleEvent(Event):
    """A new work scale was created."""

    work_scale: WorkScale | None = None

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {**super()._decode(data), "work_scale": _nested(data, "work_scale", WorkScale)}

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> WorkScaleEvent:
        """Decode a JSON payload into a work scale event and validate it."""
        return _parse(cls, data)


@dataclass(kw_only=True)
class WorkScaleEmployeeEvent(Event):
    """A work scale was assigned to an employee of a company."""

    company_id: str = ""
    employee_id: str = ""
    work_scale_id: str = ""

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            **super()._decode(data),
            "company_id": _string(data, "company_id"),
            "employee_id": _string(data, "employee_id"),
            "work_scale_id": _string(data, "work_scale_id"),
        }

    def _validate(self) -> None:
        super()._validate()
        _check_uuid("company_id", self.company_id)
        _check_uuid("employee_id", self.employee_id)
        _check_uuid("work_scale_id", self.work_scale_id)

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> WorkScaleEmployeeEvent:
        """Decode a JSON payload into a work scale assignment event and validate it."""
        return _parse(cls, data)


@dataclass(kw_only=True)
class ClockEvent(Event):
    """A clock was added to a work scale or changed."""

    clock: Clock | None = None

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {**super()._decode(data), "clock": _nested(data, "clock", Clock)}

    def _validate(self) -> None:
        super()._validate()
        _check_required("clock", self.clock)
        self.clock._validate()

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> ClockEvent:
        """Decode a JSON payload into a clock event and validate it."""
        return _parse(cls, data)


@dataclass(kw_only=True)
class DeleteClockEvent(Event):
    """A clock was removed from a work scale."""

    company_id: str = ""
    work_scale_id: str = ""
    clock_id: str = ""

    @classmethod
    def _decode(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            **super()._decode(data),
            "company_id": _string(data, "company_id"),
            "work_scale_id": _string(data, "work_scale_id"),
            "clock_id": _string(data, "clock_id"),
        }

    def _validate(self) -> None:
        super()._validate()
        _check_uuid("company_id", self.company_id)
        _check_uuid("work_scale_id", self.work_scale_id)
        _check_uuid("clock_id", self.clock_id)

    @classmethod
    def parse_json(cls, data: bytes | bytearray | str) -> DeleteClockEvent:
        """Decode a JSON payload into a clock deletion event and validate it."""
        return _parse(cls, data)