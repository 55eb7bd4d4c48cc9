"""
This module exports the event log, the order aggregate and their factories.
"""
from .models import (
    DomainEvent,
    Event,
    EVENT_ADAPTER,
    EPOCH,
    OrderPlaced,
    ItemAdded,
    LineItem,
    OrderState,
)
from .errors import UnhandledEventError
from .event_log import EventLog
from .notifier import LoggingObserver, Notifier
from .aggregate import OrderAggregate, apply_event, replay
from .factories import create_event_log, create_order_aggregate

__all__ = [
    "DomainEvent",
    "Event",
    "EVENT_ADAPTER",
    "EPOCH",
    "OrderPlaced",
    "ItemAdded",
    "LineItem",
    "OrderState",
    "UnhandledEventError",
    "EventLog",
    "LoggingObserver",
    "Notifier",
    "OrderAggregate",
    "apply_event",
    "replay",
    "create_event_log",
    "create_order_aggregate",
]
