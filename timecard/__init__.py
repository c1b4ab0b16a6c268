"""Timecard library: entities, message schemas, SQL persistence and event processing."""

__version__ = "0.1.0"