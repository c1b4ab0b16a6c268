# timecard

A library for keeping timecard data. It models companies, employees, the
work scales a company assigns to its employees, the clocks (entry and
exit times) that make up a work scale, time records, and the epochs that
pair an input record with an output record. Incoming events are tracked
by identifier: a known event gets another attempt counted, at most ten in
all, and is then completed or failed.

## Modules

- `timecard.utils`: `date_equal`, `get_env`, `clean_non_digits` and
  `is_clock`.
- `timecard.statuses`: the `EpochStatus`, `EventStatus` and
  `TimeRecordStatus` integer enumerations; `str()` of a member gives its
  name.
- `timecard.entities`: the domain entities `Company`, `Employee`,
  `CompaniesEmployee`, `WorkScale`, `Clock` (with `ClockType`), `Event`,
  `TimeRecord`, `Epoch` and `Claims`. Each has a `create` class method
  that builds and validates it; rule breaks raise `ValidationError`, and
  forbidden state changes (completing a failed event, for instance) raise
  `ValueError`.
- `timecard.schema`: the incoming message payloads (`Event`,
  `EmployeeEvent`, `CompanyEvent`, `CompanyEmployeeEvent`,
  `WorkScaleEvent`, `WorkScaleEmployeeEvent`, `ClockEvent`,
  `DeleteClockEvent`), each with a `parse_json` class method taking bytes
  or text. Malformed or invalid payloads raise `SchemaError`.
- `timecard.service`: `Service`, the use cases, working against any
  object that follows `RepositoryProtocol`. Repository finders raise
  `NotFoundError` when nothing matches.
- `timecard.database`: `Database`, a SQLAlchemy engine opened from a
  database type (`"sqlite"`/`"sqlite3"` or `"postgres"`/`"postgresql"`)
  and a DSN, with `migrate()` to create the tables, `debug()` to log
  statements and `close()`; it is also a context manager. Connection
  failures raise `DatabaseError`.
- `timecard.sql_repository`: `SqlRepository`, the `RepositoryProtocol`
  implementation on a `Database`, with an optional producer for
  `publish_event`.
- `timecard.processor`: `KafkaProcessor`, which reads `Message` objects
  from a consumer and routes each by topic, through a mapping of topic
  name to `Action`, to the matching service call; failures raise
  `ProcessingError` and seek the consumer back to the message.
  `start_kafka_server` wires a `Database`, consumer, producer and topic
  mapping together and runs the loop forever.

## Examples

Clock strings:

```python
from timecard.utils import clean_non_digits, is_clock

is_clock("08:30")          # True
is_clock("24:00")          # False
clean_non_digits("08:30")  # "0830"
```

Event lifecycle:

```python
import uuid

from timecard.entities import Event
from timecard.statuses import EventStatus

event = Event.create(str(uuid.uuid4()), "new employee")
event.add_attempt()
event.complete()
assert event.status is EventStatus.COMPLETED
```

Parsing an incoming message:

```python
from timecard.schema import CompanyEmployeeEvent

payload = b'''{
    "id": "6f1c1f62-4a5e-4f4b-9d43-3b1f7f6a2c10",
    "company_id": "0b7e6f0a-1c2d-4e3f-8a9b-0c1d2e3f4a5b",
    "employee_id": "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"
}'''
event = CompanyEmployeeEvent.parse_json(payload)
print(event.company_id, event.employee_id)
```

Storing data in an in-memory SQLite database:

```python
import uuid

from timecard.database import Database
from timecard.service import Service
from timecard.sql_repository import SqlRepository

with Database("sqlite", ":memory:") as database:
    database.migrate()
    service = Service(SqlRepository(database))

    company_id, employee_id = str(uuid.uuid4()), str(uuid.uuid4())
    service.create_company(company_id)
    service.create_employee(employee_id)
    service.add_employee_to_company(company_id, employee_id)
```

## What this package does not do

- It has no command-line program and no configuration loading; it is
  used as a library.
- It has no message-broker client. `KafkaProcessor` and
  `start_kafka_server` take any consumer object with `subscribe`,
  `read_message` and `seek`, and `SqlRepository` any producer with
  `produce`; the caller supplies them, along with the topic names.
- It has no HTTP or RPC server.
- SQLite works out of the box; for PostgreSQL a SQLAlchemy-supported
  driver must be installed separately.

## Tests

The test suite uses pytest; install the `test` extra to get it.