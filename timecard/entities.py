"""Domain entities of the timecard service and their validation rules."""

from __future__ import annotations

import itertools
import re
import secrets
import time as _time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .statuses import EpochStatus, EventStatus, TimeRecordStatus
from .utils import clean_non_digits, is_clock

MAX_EVENT_ATTEMPTS = 10

_UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")
_OBJECT_ID_PROCESS = secrets.token_bytes(5)
_OBJECT_ID_COUNTER = itertools.count(int.from_bytes(secrets.token_bytes(3), "big"))


class ValidationError(ValueError):
    """Raised when an entity breaks one of its field rules."""


def _check_required(name: str, value: Any) -> None:
    if value is None or value == "":
        raise ValidationError(f"{name}: non zero value required")


def _check_uuid(name: str, value: str | None, *, optional: bool = False) -> None:
    if value is None or value == "":
        if optional:
            return
        raise ValidationError(f"{name}: non zero value required")
    if not isinstance(value, str) or _UUID_PATTERN.fullmatch(value) is None:
        raise ValidationError(f"{name}: {value} does not validate as uuid")


def _coerce(enum_cls: type[IntEnum], value: Any, name: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            f"{name}: {value} does not validate as {enum_cls.__name__}"
        ) from None


def _is_timezone(name: str) -> bool:
    if name in ("UTC", "Local"):
        return True
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError):
        return False
    return True


def _new_object_id() -> str:
    timestamp = int(_time.time()) & 0xFFFFFFFF
    counter = next(_OBJECT_ID_COUNTER) & 0xFFFFFF
    raw = timestamp.to_bytes(4, "big") + _OBJECT_ID_PROCESS + counter.to_bytes(3, "big")
    return raw.hex()


class ClockType(IntEnum):
    """Whether a scheduled clock marks the start or the end of work."""

    INPUT = 1
    OUTPUT = 2

    def __str__(self) -> str:
        return self.name

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


@dataclass(kw_only=True)
class _Base:
    id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def _validate_base(self) -> None:
        _check_uuid("id", self.id)
        _check_required("created_at", self.created_at)

    def _touch(self) -> None:
        self.updated_at = datetime.now()


@dataclass
class Claims:
    """Identity and roles of an authenticated employee."""

    employee_id: str
    roles: list[str] = field(default_factory=list)

    @classmethod
    def create(cls, employee_id: str, roles: list[str]) -> Claims:
        return cls(employee_id=employee_id, roles=list(roles))


@dataclass(kw_only=True)
class Company(_Base):
    """A company that employs people and owns work scales."""

    employees: list[Employee] = field(default_factory=list, repr=False, compare=False)
    work_scales: list[WorkScale] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def create(cls, entity_id: str) -> Company:
        company = cls(id=entity_id, created_at=datetime.now())
        company._validate()
        return company

    def _validate(self) -> None:
        self._validate_base()


@dataclass(kw_only=True)
class Employee(_Base):
    """A person who records working time."""

    companies: list[Company] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def create(cls, entity_id: str) -> Employee:
        employee = cls(id=entity_id, created_at=datetime.now())
        employee._validate()
        return employee

    def _validate(self) -> None:
        self._validate_base()


@dataclass(kw_only=True)
class CompaniesEmployee:
    """Link between a company and an employee, with an optional work scale."""

    company_id: str = ""
    employee_id: str = ""
    work_scale_id: str | None = None
    work_scale: WorkScale | None = field(default=None, repr=False, compare=False)

    @classmethod
    def create(cls, company_id: str, employee_id: str) -> CompaniesEmployee:
        link = cls(company_id=company_id, employee_id=employee_id)
        link._validate()
        return link

    def _validate(self) -> None:
        _check_uuid("company_id", self.company_id)
        _check_uuid("employee_id", self.employee_id)
        _check_uuid("work_scale_id", self.work_scale_id, optional=True)

    def set_scale(self, work_scale: WorkScale) -> None:
        """Assign the employee's work scale within this company."""
        self.work_scale_id = work_scale.id
        self.work_scale = work_scale
        self._validate()


@dataclass(kw_only=True)
class WorkScale(_Base):
    """A company's working schedule made of clocks."""

    clocks: list[Clock] = field(default_factory=list, repr=False, compare=False)
    company_id: str | None = None
    company: Company | None = field(default=None, repr=False, compare=False)

    @classmethod
    def create(cls, entity_id: str, company: Company, *args: Clock) -> WorkScale:
        """Build a work scale for ``company``; extra arguments are its clocks."""
        work_scale = cls(
            id=entity_id,
            created_at=datetime.now(),
            clocks=list(args),
            company_id=company.id,
            company=company,
        )
        work_scale._validate()
        return work_scale

    def _validate(self) -> None:
        self._validate_base()
        _check_uuid("company_id", self.company_id)


@dataclass(kw_only=True)
class Clock(_Base):
    """A scheduled clock-in or clock-out time within a work scale."""

    clock_type: ClockType | None = None
    clock: str = ""
    timezone: str = ""
    work_scale_id: str = ""
    work_scale: WorkScale | None = field(default=None, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        entity_id: str,
        clock: str,
        clock_type: int,
        timezone: str,
        work_scale: WorkScale,
    ) -> Clock:
        entity = cls(
            id=entity_id,
            created_at=datetime.now(),
            clock_type=_coerce(ClockType, clock_type, "clock_type"),
            clock=clean_non_digits(clock),
            timezone=timezone,
            work_scale_id=work_scale.id,
            work_scale=work_scale,
        )
        entity._validate()
        return entity

    def _validate(self) -> None:
        self._validate_base()
        if not isinstance(self.clock_type, ClockType):
            raise ValidationError(f"clock_type: {self.clock_type} does not validate as ClockType")
        _check_required("clock", self.clock)
        if not is_clock(self.clock):
            raise ValidationError(f"clock: {self.clock} does not validate as clock")
        _check_required("timezone", self.timezone)
        if not _is_timezone(self.timezone):
            raise ValidationError(f"timezone: {self.timezone} does not validate as timezone")
        _check_uuid("work_scale_id", self.work_scale_id)

    def set_type(self, clock_type: int) -> None:
        self.clock_type = _coerce(ClockType, clock_type, "clock_type")
        self._touch()
        self._validate()

    def set_clock(self, clock: str) -> None:
        self.clock = clock
        self._touch()
        self._validate()

    def set_timezone(self, timezone: str) -> None:
        self.timezone = timezone
        self._touch()
        self._validate()


@dataclass(kw_only=True)
class Event(_Base):
    """An incoming event tracked so that it is processed at most once."""

    status: EventStatus = EventStatus.PENDING
    resume: str | None = None
    attempts: int = 0

    @classmethod
    def create(cls, entity_id: str, resume: str) -> Event:
        event = cls(
            id=entity_id,
            created_at=datetime.now(),
            status=EventStatus.PENDING,
            resume=resume,
            attempts=1,
        )
        event._validate()
        return event

    def _validate(self) -> None:
        self._validate_base()
        if not isinstance(self.status, EventStatus):
            raise ValidationError(f"status: {self.status} does not validate as EventStatus")

    def add_attempt(self) -> None:
        """Count another processing attempt; the event fails after too many."""
        if self.status is EventStatus.COMPLETED:
            raise ValueError("event is completed")
        if self.status is EventStatus.FAILED:
            raise ValueError("event is failed")
        if self.attempts >= MAX_EVENT_ATTEMPTS:
            self.status = EventStatus.FAILED
            raise ValueError("event has reached the maximum number of attempts")
        self.attempts += 1

    def complete(self) -> None:
        if self.status is EventStatus.COMPLETED:
            raise ValueError("the event has already been completed")
        if self.status is EventStatus.FAILED:
            raise ValueError("the failed event cannot be completed")
        self.status = EventStatus.COMPLETED
        self._touch()
        self._validate()

    def fail(self) -> None:
        if self.status is EventStatus.COMPLETED:
            raise ValueError("the completed event cannot be failed")
        if self.status is EventStatus.FAILED:
            raise ValueError("the event has already been failed")
        self.status = EventStatus.FAILED
        self._touch()
        self._validate()


@dataclass(kw_only=True)
class TimeRecord(_Base):
    """A single clock punch by an employee at a company."""

    time: datetime | None = None
    status: TimeRecordStatus = TimeRecordStatus.PENDING
    tz_offset: int = 0
    employee_id: str | None = None
    employee: Employee | None = field(default=None, repr=False, compare=False)
    company_id: str | None = None
    company: Company | None = field(default=None, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        entity_id: str,
        time: datetime,
        tz_offset: int,
        status: int,
        employee: Employee,
        company: Company,
    ) -> TimeRecord:
        record = cls(
            id=entity_id,
            created_at=datetime.now(),
            time=time,
            status=_coerce(TimeRecordStatus, status, "status"),
            tz_offset=tz_offset,
            employee_id=employee.id,
            employee=employee,
            company_id=company.id,
            company=company,
        )
        record._validate()
        return record

    def _validate(self) -> None:
        _check_required("time", self.time)
        if not isinstance(self.status, TimeRecordStatus):
            raise ValidationError(f"status: {self.status} does not validate as TimeRecordStatus")
        if not isinstance(self.tz_offset, int):
            raise ValidationError(f"tz_offset: {self.tz_offset} does not validate as int")
        _check_uuid("employee_id", self.employee_id)
        _check_uuid("company_id", self.company_id)

    def approve(self) -> None:
        self.status = TimeRecordStatus.APPROVED
        self._touch()
        self._validate()

    def refuse(self) -> None:
        self.status = TimeRecordStatus.REFUSED
        self._touch()
        self._validate()


@dataclass(kw_only=True)
class Epoch(_Base):
    """A worked period opened by an input record and closed by an output record."""

    input_record_id: str | None = None
    input_record: TimeRecord | None = field(default=None, repr=False, compare=False)
    output_record_id: str | None = None
    output_record: TimeRecord | None = field(default=None, repr=False, compare=False)
    worked_hours: timedelta = timedelta(0)
    status: EpochStatus = EpochStatus.PENDING
    employee_id: str | None = None
    employee: Employee | None = field(default=None, repr=False, compare=False)
    company_id: str | None = None
    company: Company | None = field(default=None, repr=False, compare=False)
    token: str | None = None

    @classmethod
    def create(cls, input_record: TimeRecord, employee: Employee, company: Company) -> Epoch:
        epoch = cls(
            id=str(uuid.uuid4()),
            created_at=datetime.now(),
            input_record_id=input_record.id,
            input_record=input_record,
            status=EpochStatus.PENDING,
            employee_id=employee.id,
            employee=employee,
            company_id=company.id,
            company=company,
            token=_new_object_id(),
        )
        epoch._validate()
        return epoch

    def _validate(self) -> None:
        _check_uuid("input_record_id", self.input_record_id)
        _check_uuid("output_record_id", self.output_record_id, optional=True)
        if not isinstance(self.status, EpochStatus):
            raise ValidationError(f"status: {self.status} does not validate as EpochStatus")
        _check_uuid("employee_id", self.employee_id)
        _check_uuid("company_id", self.company_id)

    def complete(self, output_record: TimeRecord) -> None:
        if self.status is EpochStatus.PROCESSED:
            raise ValueError("the processed epoch cannot be completed")
        if self.status is EpochStatus.FAILED:
            raise ValueError("the failed epoch cannot be completed")
        self.output_record_id = output_record.id
        self.output_record = output_record
        self.status = EpochStatus.COMPLETED
        self._touch()
        self._validate()

    def process(self) -> None:
        if self.status is EpochStatus.FAILED:
            raise ValueError("the failed epoch cannot be processed")
        if self.status is EpochStatus.PROCESSED:
            raise ValueError("the epoch has already been processed")
        self.status = EpochStatus.PROCESSED
        self._touch()
        self._validate()

    def fail(self) -> None:
        if self.status is EpochStatus.PROCESSED:
            raise ValueError("the processed epoch cannot be failed")
        if self.status is EpochStatus.COMPLETED:
            raise ValueError("the completed epoch cannot be failed")
        if self.status is EpochStatus.FAILED:
            raise ValueError("the epoch has already been failed")
        self.status = EpochStatus.FAILED
        self._touch()
        self._validate()