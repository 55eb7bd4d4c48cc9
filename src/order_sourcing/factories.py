"""
This module builds event logs and aggregates from a plain configuration dict.

Nothing here is cached at module level: every call returns new objects, and the
caller passes them to whoever needs them.
"""
import logging
from typing import Dict

from .aggregate import OrderAggregate, utc_now
from .event_log import EventLog
from .notifier import LoggingObserver


def resolve_level(level) -> int:
    """Accepts a level number, a digit string such as "10", or a level name."""
    if isinstance(level, int):
        return level
    text = str(level).strip()
    if text.isdigit():
        return int(text)
    resolved = logging.getLevelName(text.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def create_event_log(config: Dict | None = None) -> EventLog:
    config = config or {}
    observers = []
    if config.get("log_events", True):
        observers.append(LoggingObserver(level=resolve_level(config.get("log_level", "INFO"))))
    notifier = config.get("notifier")
    if notifier is not None:
        observers.append(notifier)
    return EventLog(observers)


def create_order_aggregate(config: Dict | None = None, event_log: EventLog | None = None) -> OrderAggregate:
    config = config or {}
    store = event_log if event_log is not None else create_event_log(config)
    return OrderAggregate(store, clock=config.get("clock", utc_now))
