import uuid
from datetime import datetime

import pytest

from timecard.database import Database, DatabaseError
from timecard.entities import (
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
from timecard.service import NotFoundError, Service
from timecard.sql_repository import SqlRepository
from timecard.statuses import EpochStatus, EventStatus, TimeRecordStatus


def new_id():
    return str(uuid.uuid4())


class RecordingProducer:
    def __init__(self):
        self.sent = []

    def produce(self, topic, value, key):
        self.sent.append((topic, value, key))


@pytest.fixture
def database():
    db = Database("sqlite3", ":memory:")
    db.migrate()
    yield db
    db.close()


@pytest.fixture
def repo(database):
    return SqlRepository(database)


@pytest.fixture
def company(repo):
    entity = Company.create(new_id())
    repo.create_company(entity)
    return entity


@pytest.fixture
def employee(repo):
    entity = Employee.create(new_id())
    repo.create_employee(entity)
    return entity


def test_employee_round_trip(repo, employee):
    found = repo.find_employee(employee.id)
    assert found.id == employee.id
    assert found.created_at == employee.created_at
    assert found.companies == []


def test_missing_employee(repo):
    with pytest.raises(NotFoundError, match="no employee found"):
        repo.find_employee(new_id())


def test_missing_company(repo):
    with pytest.raises(NotFoundError, match="no company found"):
        repo.find_company(new_id())


def test_employee_loads_companies(repo, company, employee):
    repo.add_employee_to_company(CompaniesEmployee.create(company.id, employee.id))
    found = repo.find_employee(employee.id)
    assert [c.id for c in found.companies] == [company.id]


def test_duplicate_create_raises(repo, company):
    with pytest.raises(DatabaseError):
        repo.create_company(Company(id=company.id, created_at=datetime.now()))


def test_event_save_updates_attempts(repo):
    event = Event.create(new_id(), "resume")
    repo.create_event(event)
    event.add_attempt()
    repo.save_event(event)
    found = repo.find_event(event.id)
    assert found.attempts == 2
    assert found.status is EventStatus.PENDING
    assert found.resume == "resume"


def test_save_inserts_unknown_event(repo):
    event = Event.create(new_id(), "resume")
    repo.save_event(event)
    assert repo.find_event(event.id).id == event.id


def test_missing_event(repo):
    with pytest.raises(NotFoundError, match="no event found"):
        repo.find_event(new_id())


def test_service_counts_repeated_events(repo):
    service = Service(repo)
    event_id = new_id()
    service.process_event(event_id, "first")
    service.process_event(event_id, "second")
    found = repo.find_event(event_id)
    assert found.attempts == 2
    assert found.resume == "first"


def test_work_scale_loads_clocks(repo, company):
    scale = WorkScale.create(new_id(), company)
    repo.create_work_scale(scale)
    clock = Clock.create(new_id(), "08:00", 1, "UTC", scale)
    repo.create_clock(clock)
    found = repo.find_work_scale(scale.id)
    assert found.company_id == company.id
    assert [c.id for c in found.clocks] == [clock.id]
    assert found.clocks[0].clock == clock.clock
    assert found.clocks[0].clock_type is ClockType.INPUT


def test_missing_work_scale(repo):
    with pytest.raises(NotFoundError, match="no work scale found"):
        repo.find_work_scale(new_id())


def test_clock_lookup_requires_matching_scale(repo, company):
    scale = WorkScale.create(new_id(), company)
    repo.create_work_scale(scale)
    clock = Clock.create(new_id(), "08:00", 1, "UTC", scale)
    repo.create_clock(clock)
    with pytest.raises(NotFoundError, match="no clock found"):
        repo.find_clock(new_id(), clock.id)


def test_save_and_delete_clock(repo, company):
    scale = WorkScale.create(new_id(), company)
    repo.create_work_scale(scale)
    clock = Clock.create(new_id(), "08:00", 1, "UTC", scale)
    repo.create_clock(clock)
    clock.set_type(2)
    repo.save_clock(clock)
    found = repo.find_clock(scale.id, clock.id)
    assert found.clock_type is ClockType.OUTPUT
    assert found.updated_at is not None and found.updated_at >= found.created_at
    repo.delete_clock(scale.id, clock.id)
    with pytest.raises(NotFoundError):
        repo.find_clock(scale.id, clock.id)


def test_company_employee_scale(repo, company, employee):
    repo.add_employee_to_company(CompaniesEmployee.create(company.id, employee.id))
    scale = WorkScale.create(new_id(), company)
    repo.create_work_scale(scale)
    link = repo.find_company_employee(company.id, employee.id)
    assert link.work_scale_id is None
    link.set_scale(scale)
    repo.save_company_employee(link)
    assert repo.find_company_employee(company.id, employee.id).work_scale_id == scale.id


def test_missing_company_employee(repo, company, employee):
    with pytest.raises(NotFoundError, match="company-employee relationship not found"):
        repo.find_company_employee(company.id, employee.id)


def test_time_record_round_trip(repo, company, employee):
    record = TimeRecord.create(new_id(), datetime(2021, 10, 10, 8, 0), 0, 1, employee, company)
    repo.register_time_record(record)
    record.approve()
    repo.save_time_record(record)
    found = repo.find_time_record(record.id)
    assert found.status is TimeRecordStatus.APPROVED
    assert found.employee_id == employee.id
    assert found.company_id == company.id


def test_missing_time_record(repo):
    with pytest.raises(NotFoundError, match="no time record found"):
        repo.find_time_record(new_id())


def test_epoch_round_trip(repo, company, employee):
    start = TimeRecord.create(new_id(), datetime(2021, 10, 10, 8, 0), 0, 1, employee, company)
    end = TimeRecord.create(new_id(), datetime(2021, 10, 10, 12, 0), 0, 1, employee, company)
    repo.register_time_record(start)
    repo.register_time_record(end)
    epoch = Epoch.create(start, employee, company)
    repo.create_epoch(epoch)
    found = repo.find_epoch(epoch.id)
    assert found.token == epoch.token
    assert found.status is EpochStatus.PENDING
    assert found.input_record_id == start.id
    epoch.complete(end)
    repo.save_epoch(epoch)
    found = repo.find_epoch(epoch.id)
    assert found.status is EpochStatus.COMPLETED
    assert found.output_record_id == end.id


def test_missing_epoch(repo):
    with pytest.raises(NotFoundError, match="no epoch found"):
        repo.find_epoch(new_id())


def test_publish_event_uses_producer(database):
    producer = RecordingProducer()
    repo = SqlRepository(database, producer)
    repo.publish_event("payload", "topic", "key")
    assert producer.sent == [("topic", b"payload", b"key")]


def test_publish_event_without_producer(repo):
    with pytest.raises(RuntimeError):
        repo.publish_event("payload", "topic", "key")