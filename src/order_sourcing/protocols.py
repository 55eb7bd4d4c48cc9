"""
This module defines the abstract protocols for event storage and observation.

The aggregate talks to an `EventStore`, not to a concrete log, and the log
reports appends to `EventObserver`s instead of writing diagnostics itself.
"""
from typing import Iterator, List, Protocol

from .models import DomainEvent


class EventObserver(Protocol):
    """
    Called by the log after each event is committed.
    Observers are a side channel and must not be relied on for correctness.
    """
    def __call__(self, event: DomainEvent, version: int) -> None:
        ...


class EventStore(Protocol):
    """
    Defines the contract the aggregate needs from an event log.
    """
    @property
    def version(self) -> int:
        ...

    def append(self, event: DomainEvent) -> int:
        ...

    def events_for(self, correlation_key: str) -> List[DomainEvent]:
        ...

    def read(self, from_version: int = 0) -> Iterator[DomainEvent]:
        ...
