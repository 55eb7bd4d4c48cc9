"""
This module implements the order aggregate and its replay engine.

State is never patched in place: intent methods only append events, and
`rebuild_state` folds the events of one order, in append order, through a pure
reducer. Replaying the same events therefore always yields an equal state.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, get_args

from .errors import UnhandledEventError
from .models import DomainEvent, Event, ItemAdded, LineItem, OrderPlaced, OrderState
from .protocols import EventStore


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _apply_order_placed(state: OrderState, event: OrderPlaced) -> OrderState:
    return state.model_copy(
        update={
            "order_id": event.order_id,
            "customer_id": event.customer_id,
            "created_at": event.created_at,
        }
    )


def _apply_item_added(state: OrderState, event: ItemAdded) -> OrderState:
    item = LineItem(item_id=event.item_id, quantity=event.quantity)
    return state.model_copy(update={"items": (*state.items, item)})


_HANDLERS: Dict[type, Callable[[OrderState, DomainEvent], OrderState]] = {
    OrderPlaced: _apply_order_placed,
    ItemAdded: _apply_item_added,
}


def _check_exhaustive():
    """Every member of the `Event` union must have exactly one reducer clause."""
    union, *_ = get_args(Event)
    variants = set(get_args(union))
    missing = variants - set(_HANDLERS)
    extra = set(_HANDLERS) - variants
    if missing or extra:
        raise UnhandledEventError(
            f"Reducer does not match the Event union: "
            f"missing={sorted(v.__name__ for v in missing)}, "
            f"extra={sorted(v.__name__ for v in extra)}"
        )


_check_exhaustive()


def apply_event(state: OrderState, event: DomainEvent) -> OrderState:
    """Combines the accumulator with one event and returns the new accumulator."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise UnhandledEventError(f"No reducer clause for event type {type(event).__name__}")
    return handler(state, event)


def replay(events: Iterable[DomainEvent], initial: OrderState | None = None) -> OrderState:
    state = initial if initial is not None else OrderState.empty()
    for event in events:
        state = apply_event(state, event)
    return state


class OrderAggregate:
    """
    Issues order events into an event store and rebuilds order state from them.

    `add_item` does not check that the order has been placed; consistency is
    left to the read side, where an order without an OrderPlaced event folds to
    a state with empty identity fields.
    """

    def __init__(self, store: EventStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        self._state: OrderState | None = None

    def place_order(self, order_id: str, customer_id: str) -> OrderPlaced:
        event = OrderPlaced(order_id=order_id, customer_id=customer_id, created_at=self.clock())
        self.store.append(event)
        return event

    def add_item(self, order_id: str, item_id: str, quantity: int) -> ItemAdded:
        event = ItemAdded(order_id=order_id, item_id=item_id, quantity=quantity)
        self.store.append(event)
        return event

    def rebuild_state(self, order_id: str) -> OrderState:
        """
        Replaces the current state with a fresh fold over the events of
        `order_id`. An unknown order yields `OrderState.empty()`.
        """
        events = self.store.events_for(order_id)
        self._state = replay(events)
        logging.debug(f"Rebuilt state for {order_id!r} from {len(events)} events")
        return self._state

    def get_state(self) -> OrderState | None:
        """Returns the last rebuilt state, or None if `rebuild_state` was never called."""
        return self._state
