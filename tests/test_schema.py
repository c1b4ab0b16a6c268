import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from timecard.schema import (
    ClockEvent,
    CompanyEmployeeEvent,
    CompanyEvent,
    DeleteClockEvent,
    EmployeeEvent,
    Event,
    SchemaError,
    WorkScaleEmployeeEvent,
    WorkScaleEvent,
)

STAMP = "2021-10-10T10:00:00Z"


def new_id():
    return str(uuid.uuid4())


def encode(payload):
    return json.dumps(payload).encode()


def clock_payload(**overrides):
    clock = {
        "id": new_id(),
        "created_at": STAMP,
        "type": 1,
        "clock": "08:00",
        "timezone": "UTC",
        "work_scale_id": new_id(),
    }
    clock.update(overrides)
    return {"id": new_id(), "clock": clock}


def test_event_parses_id_from_bytes_and_str():
    event_id = new_id()
    assert Event.parse_json(encode({"id": event_id})).id == event_id
    assert Event.parse_json(json.dumps({"id": event_id, "extra": 1})).id == event_id


@pytest.mark.parametrize(
    "raw",
    [b"not json", b"[1, 2]", b'"text"', b"{}", b"null", b'{"id": "abc"}', b'{"id": 5}'],
)
def test_event_rejects_bad_payloads(raw):
    with pytest.raises(SchemaError):
        Event.parse_json(raw)


def test_schema_error_is_value_error():
    with pytest.raises(ValueError):
        Event.parse_json(b"{}")


def test_employee_event_decodes_nested_employee():
    employee_id = new_id()
    event = EmployeeEvent.parse_json(
        encode({"id": new_id(), "employee": {"id": employee_id, "created_at": STAMP}})
    )
    assert event.employee.id == employee_id
    assert event.employee.created_at == datetime(2021, 10, 10, 10, tzinfo=timezone.utc)
    assert event.employee.updated_at is None


def test_employee_event_does_not_require_employee():
    assert EmployeeEvent.parse_json(encode({"id": new_id()})).employee is None


def test_company_event_requires_valid_company():
    company_id = new_id()
    event = CompanyEvent.parse_json(
        encode({"id": new_id(), "company": {"id": company_id, "created_at": STAMP}})
    )
    assert event.company.id == company_id
    with pytest.raises(SchemaError):
        CompanyEvent.parse_json(encode({"id": new_id()}))
    with pytest.raises(SchemaError):
        CompanyEvent.parse_json(encode({"id": new_id(), "company": {"id": company_id}}))
    with pytest.raises(SchemaError):
        CompanyEvent.parse_json(encode({"id": new_id(), "company": "x"}))


def test_zero_timestamp_counts_as_missing():
    payload = {"id": new_id(), "company": {"id": new_id(), "created_at": "0001-01-01T00:00:00Z"}}
    with pytest.raises(SchemaError):
        CompanyEvent.parse_json(encode(payload))


def test_timestamp_with_nanoseconds_and_offset():
    payload = {
        "id": new_id(),
        "employee": {"id": new_id(), "created_at": "2021-10-10T10:00:00.123456789-03:00"},
    }
    created = EmployeeEvent.parse_json(encode(payload)).employee.created_at
    assert created.utcoffset() == timedelta(hours=-3)
    assert created.microsecond == 123456


def test_malformed_timestamp_is_rejected():
    payload = {"id": new_id(), "employee": {"id": new_id(), "created_at": "yesterday"}}
    with pytest.raises(SchemaError):
        EmployeeEvent.parse_json(encode(payload))


def test_company_employee_event_fields():
    company_id, employee_id = new_id(), new_id()
    event = CompanyEmployeeEvent.parse_json(
        encode({"id": new_id(), "company_id": company_id, "employee_id": employee_id})
    )
    assert (event.company_id, event.employee_id) == (company_id, employee_id)
    with pytest.raises(SchemaError):
        CompanyEmployeeEvent.parse_json(encode({"id": new_id(), "company_id": company_id}))


def test_work_scale_event_does_not_validate_work_scale():
    event = WorkScaleEvent.parse_json(
        encode({"id": new_id(), "work_scale": {"id": "not-a-uuid", "company_id": "x"}})
    )
    assert event.work_scale.id == "not-a-uuid"
    assert event.work_scale.company_id == "x"


def test_work_scale_employee_event_requires_all_ids():
    ids = {"company_id": new_id(), "employee_id": new_id(), "work_scale_id": new_id()}
    event = WorkScaleEmployeeEvent.parse_json(encode({"id": new_id(), **ids}))
    assert event.work_scale_id == ids["work_scale_id"]
    del ids["work_scale_id"]
    with pytest.raises(SchemaError):
        WorkScaleEmployeeEvent.parse_json(encode({"id": new_id(), **ids}))


def test_clock_event_decodes_clock():
    payload = clock_payload()
    event = ClockEvent.parse_json(encode(payload))
    assert event.clock.clock_type == 1
    assert event.clock.clock == "08:00"
    assert event.clock.timezone == "UTC"
    assert event.clock.work_scale_id == payload["clock"]["work_scale_id"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"type": 0},
        {"type": "1"},
        {"type": 1.5},
        {"type": True},
        {"clock": "25:00"},
        {"clock": ""},
        {"timezone": "Not/AZone"},
        {"work_scale_id": ""},
        {"created_at": None},
    ],
)
def test_clock_event_rejects_invalid_clock(overrides):
    with pytest.raises(SchemaError):
        ClockEvent.parse_json(encode(clock_payload(**overrides)))


def test_clock_event_requires_clock():
    with pytest.raises(SchemaError):
        ClockEvent.parse_json(encode({"id": new_id()}))


def test_delete_clock_event_fields():
    ids = {"company_id": new_id(), "work_scale_id": new_id(), "clock_id": new_id()}
    event = DeleteClockEvent.parse_json(encode({"id": new_id(), **ids}))
    assert (event.company_id, event.work_scale_id, event.clock_id) == (
        ids["company_id"],
        ids["work_scale_id"],
        ids["clock_id"],
    )
    with pytest.raises(SchemaError):
        DeleteClockEvent.parse_json(encode({"id": new_id(), **ids, "clock_id": "bad"}))