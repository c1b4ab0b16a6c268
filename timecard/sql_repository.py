"""Repository backed by the SQL database and an optional event producer."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Callable, Iterator, Mapping, Protocol

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from .database import (
    Database,
    DatabaseError,
    clocks,
    companies,
    companies_employees,
    employees,
    epochs,
    events,
    time_records,
    work_scales,
)
from .entities import (
    Clock,
    ClockType,
    CompaniesEmployee,
    Company,
    Employee,
    Epoch,
    Event,
    TimeRecord,
    WorkScale,
)
from .service import NotFoundError
from .statuses import EpochStatus, EventStatus, TimeRecordStatus


class Producer(Protocol):
    """Anything that can publish a message to a topic."""

    def produce(self, topic: str, value: bytes, key: bytes) -> None: ...


def _base_values(entity: Any) -> dict[str, Any]:
    return {"id": entity.id, "created_at": entity.created_at, "updated_at": entity.updated_at}


def _base_fields(row: Mapping[str, Any]) -> dict[str, Any]:
    return {"id": row["id"], "created_at": row["created_at"], "updated_at": row["updated_at"]}


def _event_values(event: Event) -> dict[str, Any]:
    return {
        **_base_values(event),
        "status": int(event.status),
        "value": event.resume,
        "attempts": event.attempts,
    }


def _work_scale_values(work_scale: WorkScale) -> dict[str, Any]:
    return {**_base_values(work_scale), "company_id": work_scale.company_id}


def _clock_values(clock: Clock) -> dict[str, Any]:
    return {
        **_base_values(clock),
        "type": int(clock.clock_type) if clock.clock_type is not None else 0,
        "clock": clock.clock,
        "timezone": clock.timezone,
        "work_scale_id": clock.work_scale_id,
    }


def _time_record_values(record: TimeRecord) -> dict[str, Any]:
    return {
        **_base_values(record),
        "time": record.time,
        "status": int(record.status),
        "tz_offset": record.tz_offset,
        "employee_id": record.employee_id,
        "company_id": record.company_id,
    }


def _epoch_values(epoch: Epoch) -> dict[str, Any]:
    return {
        **_base_values(epoch),
        "input_record": epoch.input_record_id,
        "output_record": epoch.output_record_id,
        "worked_hours": epoch.worked_hours,
        "status": int(epoch.status),
        "employee_id": epoch.employee_id,
        "company_id": epoch.company_id,
        "token": epoch.token,
    }


def _to_event(row: Mapping[str, Any]) -> Event:
    return Event(
        **_base_fields(row),
        status=EventStatus(row["status"]),
        resume=row["value"],
        attempts=row["attempts"] or 0,
    )


def _to_clock(row: Mapping[str, Any]) -> Clock:
    return Clock(
        **_base_fields(row),
        clock_type=ClockType(row["type"]),
        clock=row["clock"],
        timezone=row["timezone"],
        work_scale_id=row["work_scale_id"],
    )


def _to_time_record(row: Mapping[str, Any]) -> TimeRecord:
    return TimeRecord(
        **_base_fields(row),
        time=row["time"],
        status=TimeRecordStatus(row["status"]),
        tz_offset=row["tz_offset"] or 0,
        employee_id=row["employee_id"],
        company_id=row["company_id"],
    )


def _to_epoch(row: Mapping[str, Any]) -> Epoch:
    return Epoch(
        **_base_fields(row),
        input_record_id=row["input_record"],
        output_record_id=row["output_record"],
        worked_hours=row["worked_hours"] or timedelta(0),
        status=EpochStatus(row["status"]),
        employee_id=row["employee_id"],
        company_id=row["company_id"],
        token=row["token"],
    )


class SqlRepository:
    """Stores the service's entities in SQL tables and publishes events."""

    def __init__(self, database: Database, producer: Producer | None = None) -> None:
        self.database = database
        self.producer = producer

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        try:
            with self.database.engine.begin() as connection:
                yield connection
        except SQLAlchemyError as exc:
            raise DatabaseError(str(exc)) from exc

    def _create(self, table: Table, entity: Any, values: Callable[[Any], dict[str, Any]]) -> None:
        now = datetime.now()
        if entity.created_at is None:
            entity.created_at = now
        if entity.updated_at is None:
            entity.updated_at = now
        with self._connect() as connection:
            connection.execute(insert(table).values(**values(entity)))

    def _save(self, table: Table, entity: Any, values: Callable[[Any], dict[str, Any]]) -> None:
        entity.updated_at = datetime.now()
        if entity.created_at is None:
            entity.created_at = entity.updated_at
        row = values(entity)
        with self._connect() as connection:
            result = connection.execute(update(table).where(table.c.id == row["id"]).values(**row))
            if result.rowcount == 0:
                connection.execute(insert(table).values(**row))

    def _find_one(self, statement: Any, missing: str) -> Mapping[str, Any]:
        with self._connect() as connection:
            row = connection.execute(statement).first()
        if row is None:
            raise NotFoundError(missing)
        return row._mapping

    def create_employee(self, employee: Employee) -> None:
        self._create(employees, employee, _base_values)

    def find_employee(self, entity_id: str) -> Employee:
        """Load an employee together with the companies it belongs to."""
        with self._connect() as connection:
            row = connection.execute(select(employees).where(employees.c.id == entity_id)).first()
            company_rows = connection.execute(
                select(companies)
                .join(companies_employees, companies_employees.c.company_id == companies.c.id)
                .where(companies_employees.c.employee_id == entity_id)
                .order_by(companies.c.created_at, companies.c.id)
            ).all()
        if row is None:
            raise NotFoundError("no employee found")
        return Employee(
            **_base_fields(row._mapping),
            companies=[Company(**_base_fields(c._mapping)) for c in company_rows],
        )

    def save_employee(self, employee: Employee) -> None:
        self._save(employees, employee, _base_values)

    def create_company(self, company: Company) -> None:
        self._create(companies, company, _base_values)

    def find_company(self, entity_id: str) -> Company:
        row = self._find_one(
            select(companies).where(companies.c.id == entity_id), "no company found"
        )
        return Company(**_base_fields(row))

    def create_event(self, event: Event) -> None:
        self._create(events, event, _event_values)

    def find_event(self, entity_id: str) -> Event:
        row = self._find_one(select(events).where(events.c.id == entity_id), "no event found")
        return _to_event(row)

    def save_event(self, event: Event) -> None:
        self._save(events, event, _event_values)

    def publish_event(self, msg: str, topic: str, key: str) -> None:
        """Send ``msg`` to ``topic`` under ``key`` through the producer."""
        if self.producer is None:
            raise RuntimeError("no event producer configured")
        self.producer.produce(topic, msg.encode(), key.encode())

    def register_time_record(self, time_record: TimeRecord) -> None:
        self._create(time_records, time_record, _time_record_values)

    def save_time_record(self, time_record: TimeRecord) -> None:
        self._save(time_records, time_record, _time_record_values)

    def find_time_record(self, entity_id: str) -> TimeRecord:
        row = self._find_one(
            select(time_records).where(time_records.c.id == entity_id), "no time record found"
        )
        return _to_time_record(row)

    def create_epoch(self, epoch: Epoch) -> None:
        self._create(epochs, epoch, _epoch_values)

    def find_epoch(self, entity_id: str) -> Epoch:
        row = self._find_one(select(epochs).where(epochs.c.id == entity_id), "no epoch found")
        return _to_epoch(row)

    def save_epoch(self, epoch: Epoch) -> None:
        self._save(epochs, epoch, _epoch_values)

    def add_employee_to_company(self, company_employee: CompaniesEmployee) -> None:
        with self._connect() as connection:
            connection.execute(
                insert(companies_employees).values(
                    company_id=company_employee.company_id,
                    employee_id=company_employee.employee_id,
                    work_scale_id=company_employee.work_scale_id,
                )
            )

    def find_company_employee(self, company_id: str, employee_id: str) -> CompaniesEmployee:
        row = self._find_one(
            select(companies_employees).where(
                companies_employees.c.company_id == company_id,
                companies_employees.c.employee_id == employee_id,
            ),
            "company-employee relationship not found",
        )
        return CompaniesEmployee(
            company_id=row["company_id"],
            employee_id=row["employee_id"],
            work_scale_id=row["work_scale_id"],
        )

    def save_company_employee(self, company_employee: CompaniesEmployee) -> None:
        """Store the work scale assigned to an existing company-employee link."""
        with self._connect() as connection:
            connection.execute(
                update(companies_employees)
                .where(
                    companies_employees.c.company_id == company_employee.company_id,
                    companies_employees.c.employee_id == company_employee.employee_id,
                )
                .values(work_scale_id=company_employee.work_scale_id)
            )

    def create_work_scale(self, work_scale: WorkScale) -> None:
        self._create(work_scales, work_scale, _work_scale_values)

    def find_work_scale(self, work_scale_id: str) -> WorkScale:
        """Load a work scale together with its clocks."""
        with self._connect() as connection:
            row = connection.execute(
                select(work_scales).where(work_scales.c.id == work_scale_id)
            ).first()
            clock_rows = connection.execute(
                select(clocks)
                .where(clocks.c.work_scale_id == work_scale_id)
                .order_by(clocks.c.created_at, clocks.c.id)
            ).all()
        if row is None:
            raise NotFoundError("no work scale found")
        return WorkScale(
            **_base_fields(row._mapping),
            company_id=row._mapping["company_id"],
            clocks=[_to_clock(c._mapping) for c in clock_rows],
        )

    def save_work_scale(self, work_scale: WorkScale) -> None:
        self._save(work_scales, work_scale, _work_scale_values)

    def create_clock(self, clock: Clock) -> None:
        self._create(clocks, clock, _clock_values)

    def find_clock(self, work_scale_id: str, clock_id: str) -> Clock:
        row = self._find_one(
            select(clocks).where(clocks.c.id == clock_id, clocks.c.work_scale_id == work_scale_id),
            "no clock found",
        )
        return _to_clock(row)

    def delete_clock(self, work_scale_id: str, clock_id: str) -> None:
        with self._connect() as connection:
            connection.execute(
                delete(clocks).where(
                    clocks.c.id == clock_id, clocks.c.work_scale_id == work_scale_id
                )
            )

    def save_clock(self, clock: Clock) -> None:
        self._save(clocks, clock, _clock_values)