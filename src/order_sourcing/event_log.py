"""
This module implements the in-memory, append-only event log.

Insertion order is the total order that replay relies on: events are never
removed, updated or reordered. A single lock guards the one mutation point, and
every read works on a copy taken under that lock, so readers always see a
consistent prefix of the log. Observers are called in version order, and a
failing observer is logged without affecting the append or the other observers.
"""
import logging
import threading
from typing import Iterable, Iterator, List

from .models import DomainEvent
from .protocols import EventObserver


class EventLog:
    def __init__(self, observers: Iterable[EventObserver] = ()):
        self._events: List[DomainEvent] = []
        self._lock = threading.Lock()
        # Held from commit until every observer has seen the event. Reentrant so
        # an observer may itself append.
        self._dispatch_lock = threading.RLock()
        self._observers: List[EventObserver] = list(observers)

    @property
    def version(self) -> int:
        """Number of events appended so far. Never decreases."""
        return len(self._events)

    def __len__(self) -> int:
        return self.version

    def subscribe(self, observer: EventObserver):
        """Registers an observer that is called after every append."""
        self._observers.append(observer)

    def append(self, event: DomainEvent) -> int:
        """
        Appends a single event and returns the new version of the log.
        Observers are notified after the event has been committed.
        """
        if not isinstance(event, DomainEvent):
            raise TypeError(f"Expected a DomainEvent, got {type(event).__name__}")

        with self._dispatch_lock:
            with self._lock:
                self._events.append(event)
                version = len(self._events)

            logging.debug(f"Appended {type(event).__name__} for {event.correlation_key!r} at version {version}")
            for observer in list(self._observers):
                try:
                    observer(event, version)
                except Exception as e:
                    logging.error(f"Observer {observer!r} failed on version {version}: {e}")
        return version

    def _snapshot(self) -> List[DomainEvent]:
        with self._lock:
            return list(self._events)

    def events_for(self, correlation_key: str) -> List[DomainEvent]:
        """
        Returns every event whose correlation key equals `correlation_key`,
        in append order. Events without a correlation key never match.
        """
        return [
            event
            for event in self._snapshot()
            if event.correlation_key is not None
            and event.correlation_key == correlation_key
        ]

    def read(self, from_version: int = 0) -> Iterator[DomainEvent]:
        """
        Yields events with a version greater than `from_version`, in order.
        Versions start at 1, so the default reads the whole log.
        """
        events = self._snapshot()
        yield from events[max(from_version, 0):]
