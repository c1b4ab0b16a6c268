"""Database connection and table layout for the timecard service."""

from __future__ import annotations

import shlex
from typing import Any

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    Interval,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

metadata = MetaData()


def _id_column() -> Column:
    return Column("id", String(36), primary_key=True)


def _timestamp_columns() -> list[Column]:
    return [
        Column("created_at", DateTime(timezone=True)),
        Column("updated_at", DateTime(timezone=True)),
    ]


employees = Table("employees", metadata, _id_column(), *_timestamp_columns())

companies = Table("companies", metadata, _id_column(), *_timestamp_columns())

events = Table(
    "events",
    metadata,
    _id_column(),
    *_timestamp_columns(),
    Column("status", Integer, nullable=False),
    Column("value", String(100)),
    Column("attempts", Integer),
)

work_scales = Table(
    "work_scales",
    metadata,
    _id_column(),
    *_timestamp_columns(),
    Column("company_id", String(36), nullable=False),
)

clocks = Table(
    "clocks",
    metadata,
    _id_column(),
    *_timestamp_columns(),
    Column("type", Integer, nullable=False),
    Column("clock", String(8), nullable=False),
    Column("timezone", String(64), nullable=False),
    Column("work_scale_id", String(36), nullable=False),
    UniqueConstraint("type", "clock", "timezone", name="idx_clock_type_tz"),
)

companies_employees = Table(
    "companies_employees",
    metadata,
    Column("company_id", String(36), primary_key=True),
    Column("employee_id", String(36), primary_key=True),
    Column("work_scale_id", String(36)),
    UniqueConstraint(
        "company_id", "employee_id", "work_scale_id", name="idx_company_employee_work_scale"
    ),
)

time_records = Table(
    "time_records",
    metadata,
    _id_column(),
    *_timestamp_columns(),
    Column("time", DateTime(timezone=True), nullable=False),
    Column("status", Integer, nullable=False),
    Column("tz_offset", Integer),
    Column("employee_id", String(36), nullable=False),
    Column("company_id", String(36), nullable=False),
    UniqueConstraint("time", "employee_id", "company_id", name="idx_employee_company_time"),
)

epochs = Table(
    "epochs",
    metadata,
    _id_column(),
    *_timestamp_columns(),
    Column("input_record", String(36), nullable=False),
    Column("output_record", String(36)),
    Column("worked_hours", Interval),
    Column("status", Integer, nullable=False),
    Column("employee_id", String(36), nullable=False),
    Column("company_id", String(36), nullable=False),
    Column("token", String(25), nullable=False),
    UniqueConstraint("employee_id", "company_id", "input_record", name="idx_employee_company_input"),
    UniqueConstraint(
        "employee_id", "company_id", "output_record", name="idx_employee_company_output"
    ),
)


class DatabaseError(Exception):
    """Raised when the database cannot be reached or rejects an operation."""


def _postgres_url(dsn: str) -> URL:
    if "://" in dsn:
        if dsn.startswith("postgres://"):
            dsn = "postgresql://" + dsn[len("postgres://"):]
        return make_url(dsn)

    settings: dict[str, str] = {}
    for part in shlex.split(dsn):
        key, sep, value = part.partition("=")
        if not sep:
            raise ValueError(f"malformed dsn entry {part!r}")
        settings[key] = value

    port = settings.pop("port", None)
    return URL.create(
        "postgresql",
        username=settings.pop("user", None),
        password=settings.pop("password", None),
        host=settings.pop("host", None),
        port=int(port) if port else None,
        database=settings.pop("dbname", None),
        query=settings,
    )


def _engine_arguments(dsn_type: str, dsn: str) -> tuple[Any, dict[str, Any]]:
    if dsn_type in ("sqlite3", "sqlite"):
        if dsn in ("", ":memory:"):
            return "sqlite://", {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return f"sqlite:///{dsn}", {}
    if dsn_type in ("postgres", "postgresql"):
        return _postgres_url(dsn), {}
    raise ValueError(f"unsupported database type {dsn_type!r}")


class Database:
    """An open connection pool to the service's database."""

    def __init__(self, dsn_type: str, dsn: str) -> None:
        try:
            url, options = _engine_arguments(dsn_type, dsn)
            self.engine: Engine = create_engine(url, **options)
            with self.engine.connect():
                pass
        except (SQLAlchemyError, ImportError, ValueError) as exc:
            raise DatabaseError(f"Error connecting to database: {exc}") from exc

    def debug(self, enable: bool) -> None:
        """Turn logging of every statement on or off."""
        self.engine.echo = enable

    def migrate(self) -> None:
        """Create every table the service uses that does not exist yet."""
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise DatabaseError(str(exc)) from exc

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()