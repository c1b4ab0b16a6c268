"""Consumer loop that applies incoming events to the timecard service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Protocol

from . import schema
from .database import Database, DatabaseError
from .entities import Event
from .service import Service
from .sql_repository import Producer, SqlRepository

logger = logging.getLogger(__name__)

_HANDLED = (ValueError, LookupError, DatabaseError)


class ProcessingError(Exception):
    """Raised when an incoming message cannot be applied."""


class Action(Enum):
    """What a topic's messages do; the value names the action in error messages."""

    NEW_EMPLOYEE = "creation employee"
    NEW_COMPANY = "creation company"
    ADD_EMPLOYEE_TO_COMPANY = "addition employee to company"
    NEW_WORK_SCALE = "creation work scale"
    ADD_WORK_SCALE_TO_EMPLOYEE = "addition work scale to employee"
    ADD_CLOCK_TO_WORK_SCALE = "addition clock to work scale"
    UPDATE_CLOCK = "update clock"
    DELETE_CLOCK = "delete clock"


@dataclass
class Message:
    """A message read from a topic partition."""

    topic: str
    value: bytes
    partition: int = 0
    offset: int = 0
    key: bytes | None = None

    def __str__(self) -> str:
        return f"{self.topic}[{self.partition}]@{self.offset}"


class Consumer(Protocol):
    """Source of messages; ``read_message`` returns None when a read fails."""

    def subscribe(self, topics: list[str]) -> None: ...

    def read_message(self) -> Message | None: ...

    def seek(self, topic: str, partition: int, offset: int) -> None: ...


def _require(value: object, name: str) -> None:
    if value is None:
        raise schema.SchemaError(f"{name}: non zero value required")


class KafkaProcessor:
    """Reads messages and dispatches them to the service by topic."""

    def __init__(
        self, service: Service, consumer: Consumer, topics: Mapping[str, Action]
    ) -> None:
        self.service = service
        self.consumer = consumer
        self.topics = dict(topics)
        self._handlers: dict[Action, Callable[[bytes], None]] = {
            Action.NEW_EMPLOYEE: self._create_employee,
            Action.NEW_COMPANY: self._create_company,
            Action.ADD_EMPLOYEE_TO_COMPANY: self._add_employee_to_company,
            Action.NEW_WORK_SCALE: self._create_work_scale,
            Action.ADD_WORK_SCALE_TO_EMPLOYEE: self._add_work_scale_to_employee,
            Action.ADD_CLOCK_TO_WORK_SCALE: self._add_clock_to_work_scale,
            Action.UPDATE_CLOCK: self._update_clock,
            Action.DELETE_CLOCK: self._delete_clock,
        }

    def consume(self) -> None:
        """Subscribe to every known topic and process messages forever."""
        self.consumer.subscribe(list(self.topics))
        while True:
            message = self.consumer.read_message()
            if message is None:
                continue
            try:
                self.process_message(message)
            except ProcessingError as exc:
                logger.error("%s", exc)

    def process_message(self, message: Message) -> None:
        """Apply one message, tracking its event so it completes only once."""
        try:
            event = self._process_event(message)
        except _HANDLED as exc:
            raise ProcessingError(f"event processing error {exc}") from exc

        action = self.topics.get(message.topic)
        if action is None:
            text = message.value.decode("utf-8", errors="replace")
            raise ProcessingError(f"not a valid topic {text}")

        try:
            self._handlers[action](message.value)
        except _HANDLED as exc:
            self._retry(message)
            raise ProcessingError(f"{action.value} error {exc}") from exc

        try:
            self.service.complete_event(event.id)
        except _HANDLED as exc:
            raise ProcessingError(f"event completion error {exc}") from exc

    def _process_event(self, message: Message) -> Event:
        envelope = schema.Event.parse_json(message.value)
        return self.service.process_event(envelope.id, str(message))

    def _retry(self, message: Message) -> None:
        self.consumer.seek(message.topic, message.partition, message.offset)

    def _create_employee(self, data: bytes) -> None:
        event = schema.EmployeeEvent.parse_json(data)
        _require(event.employee, "employee")
        self.service.create_employee(event.employee.id)

    def _create_company(self, data: bytes) -> None:
        event = schema.CompanyEvent.parse_json(data)
        self.service.create_company(event.company.id)

    def _add_employee_to_company(self, data: bytes) -> None:
        event = schema.CompanyEmployeeEvent.parse_json(data)
        self.service.add_employee_to_company(event.company_id, event.employee_id)

    def _create_work_scale(self, data: bytes) -> None:
        event = schema.WorkScaleEvent.parse_json(data)
        _require(event.work_scale, "work_scale")
        self.service.create_work_scale(event.work_scale.id, event.work_scale.company_id)

    def _add_work_scale_to_employee(self, data: bytes) -> None:
        event = schema.WorkScaleEmployeeEvent.parse_json(data)
        self.service.add_work_scale_to_employee(
            event.company_id, event.employee_id, event.work_scale_id
        )

    def _add_clock_to_work_scale(self, data: bytes) -> None:
        clock = schema.ClockEvent.parse_json(data).clock
        self.service.add_clock_to_work_scale(
            clock.id, clock.clock_type, clock.clock, clock.timezone, clock.work_scale_id
        )

    def _update_clock(self, data: bytes) -> None:
        clock = schema.ClockEvent.parse_json(data).clock
        self.service.update_clock(
            clock.clock_type, clock.clock, clock.timezone, clock.work_scale_id, clock.id
        )

    def _delete_clock(self, data: bytes) -> None:
        event = schema.DeleteClockEvent.parse_json(data)
        self.service.delete_clock(event.work_scale_id, event.clock_id)


def start_kafka_server(
    database: Database,
    consumer: Consumer,
    producer: Producer | None,
    topics: Mapping[str, Action],
) -> None:
    """Wire the repository and service together and run the consumer loop."""
    repository = SqlRepository(database, producer)
    service = Service(repository)
    logger.info("kafka processor has been started")
    KafkaProcessor(service, consumer, topics).consume()