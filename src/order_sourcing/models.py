"""
This module defines the core data models for the event sourcing system using Pydantic.
Events form a closed, discriminated union on their `type` field; every variant is
frozen so that nothing can change it once it has been appended to the log.
The state models describe the materialized view produced by replaying events.
"""
from datetime import datetime, timezone
from typing import Annotated, ClassVar, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# Zero value for `created_at` before any OrderPlaced event has been folded.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Identifier = Annotated[str, Field(min_length=1)]


class DomainEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Name of the field used to group events belonging to one aggregate.
    correlation_field: ClassVar[str] = "order_id"

    @property
    def correlation_key(self) -> str | None:
        return getattr(self, self.correlation_field, None)


class OrderPlaced(DomainEvent):
    type: Literal["OrderPlaced"] = "OrderPlaced"
    order_id: Identifier
    customer_id: Identifier
    created_at: datetime


class ItemAdded(DomainEvent):
    type: Literal["ItemAdded"] = "ItemAdded"
    order_id: Identifier
    item_id: Identifier
    quantity: int


Event = Annotated[Union[OrderPlaced, ItemAdded], Field(discriminator="type")]

# Parses raw payloads (e.g. decoded JSON) into the matching event variant.
EVENT_ADAPTER = TypeAdapter(Event)


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    quantity: int


class OrderState(BaseModel):
    """
    Materialized view of one order, derived by folding its events.
    It is never authoritative: the event log is.
    """
    model_config = ConfigDict(frozen=True)

    order_id: str = ""
    customer_id: str = ""
    items: Tuple[LineItem, ...] = ()
    created_at: datetime = EPOCH

    @classmethod
    def empty(cls) -> "OrderState":
        return cls()

    @property
    def is_empty(self) -> bool:
        """True when no OrderPlaced event has been folded into this state."""
        return self.order_id == ""
