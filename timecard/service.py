"""Use cases of the timecard service on top of a repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .entities import (
    Clock,
    CompaniesEmployee,
    Company,
    Employee,
    Epoch,
    Event,
    TimeRecord,
    WorkScale,
)


class NotFoundError(LookupError):
    """Raised by a repository when a requested record does not exist."""


class RepositoryProtocol(Protocol):
    """Storage the service depends on; finders raise NotFoundError when nothing matches."""

    def create_employee(self, employee: Employee) -> None: ...

    def find_employee(self, entity_id: str) -> Employee: ...

    def save_employee(self, employee: Employee) -> None: ...

    def create_company(self, company: Company) -> None: ...

    def find_company(self, entity_id: str) -> Company: ...

    def create_event(self, event: Event) -> None: ...

    def find_event(self, entity_id: str) -> Event: ...

    def save_event(self, event: Event) -> None: ...

    def publish_event(self, msg: str, topic: str, key: str) -> None: ...

    def register_time_record(self, time_record: TimeRecord) -> None: ...

    def save_time_record(self, time_record: TimeRecord) -> None: ...

    def find_time_record(self, entity_id: str) -> TimeRecord: ...

    def create_epoch(self, epoch: Epoch) -> None: ...

    def find_epoch(self, entity_id: str) -> Epoch: ...

    def save_epoch(self, epoch: Epoch) -> None: ...

    def add_employee_to_company(self, company_employee: CompaniesEmployee) -> None: ...

    def find_company_employee(self, company_id: str, employee_id: str) -> CompaniesEmployee: ...

    def save_company_employee(self, company_employee: CompaniesEmployee) -> None: ...

    def create_work_scale(self, work_scale: WorkScale) -> None: ...

    def find_work_scale(self, work_scale_id: str) -> WorkScale: ...

    def save_work_scale(self, work_scale: WorkScale) -> None: ...

    def create_clock(self, clock: Clock) -> None: ...

    def find_clock(self, work_scale_id: str, clock_id: str) -> Clock: ...

    def delete_clock(self, work_scale_id: str, clock_id: str) -> None: ...

    def save_clock(self, clock: Clock) -> None: ...


@dataclass
class Service:
    """Application operations on companies, employees, events, records and scales."""

    repository: RepositoryProtocol

    def create_company(self, entity_id: str) -> None:
        self.repository.create_company(Company.create(entity_id))

    def create_employee(self, entity_id: str) -> None:
        self.repository.create_employee(Employee.create(entity_id))

    def add_employee_to_company(self, company_id: str, employee_id: str) -> None:
        company = self.repository.find_company(company_id)
        employee = self.repository.find_employee(employee_id)
        link = CompaniesEmployee.create(company.id, employee.id)
        self.repository.add_employee_to_company(link)

    def process_event(self, entity_id: str, resume: str) -> Event:
        """Record a new event, or count another attempt at a known one."""
        try:
            event = self.repository.find_event(entity_id)
        except NotFoundError:
            event = Event.create(entity_id, resume)
            self.repository.create_event(event)
            return event

        try:
            event.add_attempt()
        except ValueError:
            self.repository.save_event(event)
            raise
        self.repository.save_event(event)
        return event

    def complete_event(self, entity_id: str) -> None:
        event = self.repository.find_event(entity_id)
        event.complete()
        self.repository.save_event(event)

    def fail_event(self, entity_id: str) -> None:
        event = self.repository.find_event(entity_id)
        event.fail()
        self.repository.save_event(event)

    def register_time_record(
        self,
        entity_id: str,
        time: datetime,
        tz_offset: int,
        status: int,
        employee_id: str,
        company_id: str,
    ) -> None:
        employee = self.repository.find_employee(employee_id)
        company = self.repository.find_company(company_id)
        record = TimeRecord.create(entity_id, time, tz_offset, status, employee, company)
        self.repository.register_time_record(record)

    def approve_time_record(self, entity_id: str) -> None:
        record = self.repository.find_time_record(entity_id)
        record.approve()
        self.repository.save_time_record(record)

    def refuse_time_record(self, entity_id: str) -> None:
        record = self.repository.find_time_record(entity_id)
        record.refuse()
        self.repository.save_time_record(record)

    def create_work_scale(self, entity_id: str, company_id: str) -> None:
        company = self.repository.find_company(company_id)
        self.repository.create_work_scale(WorkScale.create(entity_id, company))

    def find_work_scale(self, work_scale_id: str) -> WorkScale:
        return self.repository.find_work_scale(work_scale_id)

    def add_clock_to_work_scale(
        self,
        entity_id: str,
        clock_type: int,
        clock: str,
        timezone: str,
        work_scale_id: str,
    ) -> None:
        work_scale = self.repository.find_work_scale(work_scale_id)
        entity = Clock.create(entity_id, clock, clock_type, timezone, work_scale)
        self.repository.create_clock(entity)

    def find_clock(self, work_scale_id: str, clock_id: str) -> Clock:
        return self.repository.find_clock(work_scale_id, clock_id)

    def delete_clock(self, work_scale_id: str, clock_id: str) -> None:
        self.repository.delete_clock(work_scale_id, clock_id)

    def update_clock(
        self,
        clock_type: int,
        clock: str,
        timezone: str,
        work_scale_id: str,
        clock_id: str,
    ) -> None:
        entity = self.repository.find_clock(work_scale_id, clock_id)
        entity.set_type(clock_type)
        entity.set_clock(clock)
        entity.set_timezone(timezone)
        self.repository.save_clock(entity)

    def add_work_scale_to_employee(
        self, company_id: str, employee_id: str, work_scale_id: str
    ) -> None:
        link = self.repository.find_company_employee(company_id, employee_id)
        work_scale = self.repository.find_work_scale(work_scale_id)
        link.set_scale(work_scale)
        self.repository.save_company_employee(link)