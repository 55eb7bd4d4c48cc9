import pytest
from datetime import datetime, timezone

from pydantic import ValidationError

from order_sourcing import (
    EPOCH,
    EventLog,
    ItemAdded,
    LineItem,
    OrderAggregate,
    OrderPlaced,
    OrderState,
    UnhandledEventError,
    DomainEvent,
    apply_event,
    replay,
)

T = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def aggregate(event_log):
    return OrderAggregate(event_log, clock=lambda: T)


def test_place_order_and_add_items(aggregate):
    order_id = "order-123"
    aggregate.place_order(order_id, "customer-456")
    aggregate.add_item(order_id, "item-789", 2)
    aggregate.add_item(order_id, "item-101", 5)

    aggregate.rebuild_state(order_id)
    state = aggregate.get_state()

    assert state == OrderState(
        order_id="order-123",
        customer_id="customer-456",
        items=(LineItem(item_id="item-789", quantity=2), LineItem(item_id="item-101", quantity=5)),
        created_at=T,
    )


def test_fold_example(event_log):
    event_log.append(OrderPlaced(order_id="o1", customer_id="c1", created_at=T))
    event_log.append(ItemAdded(order_id="o1", item_id="i1", quantity=2))
    event_log.append(ItemAdded(order_id="o1", item_id="i2", quantity=5))

    state = OrderAggregate(event_log).rebuild_state("o1")

    assert state.order_id == "o1"
    assert state.customer_id == "c1"
    assert state.created_at == T
    assert [(i.item_id, i.quantity) for i in state.items] == [("i1", 2), ("i2", 5)]


def test_get_state_before_rebuild_is_none(aggregate):
    aggregate.place_order("o1", "c1")
    assert aggregate.get_state() is None


def test_intents_append_without_touching_state(aggregate, event_log):
    placed = aggregate.place_order("o1", "c1")
    added = aggregate.add_item("o1", "i1", 1)

    assert isinstance(placed, OrderPlaced)
    assert placed.created_at == T
    assert isinstance(added, ItemAdded)
    assert event_log.events_for("o1") == [placed, added]
    assert aggregate.get_state() is None


def test_rebuild_is_idempotent(event_log):
    # Real clock: the stored timestamp, not a fresh one, must come back.
    aggregate = OrderAggregate(event_log)
    aggregate.place_order("o1", "c1")
    aggregate.add_item("o1", "i1", 3)

    first = aggregate.rebuild_state("o1")
    second = aggregate.rebuild_state("o1")

    assert first == second
    assert first.created_at == event_log.events_for("o1")[0].created_at


def test_rebuild_replaces_state_wholesale(aggregate):
    aggregate.place_order("o1", "c1")
    aggregate.add_item("o1", "i1", 1)
    first = aggregate.rebuild_state("o1")

    aggregate.add_item("o1", "i2", 4)
    second = aggregate.rebuild_state("o1")

    assert len(first.items) == 1
    assert [i.item_id for i in second.items] == ["i1", "i2"]
    assert aggregate.get_state() is second


def test_unknown_identity_yields_empty_state(aggregate):
    aggregate.place_order("o1", "c1")
    state = aggregate.rebuild_state("nonexistent")

    assert state == OrderState.empty()
    assert state.order_id == ""
    assert state.customer_id == ""
    assert state.items == ()
    assert state.created_at == EPOCH
    assert state.is_empty


def test_isolation_across_identities(aggregate):
    aggregate.place_order("o1", "c1")
    aggregate.add_item("o1", "i1", 1)
    before = aggregate.rebuild_state("o1")

    aggregate.place_order("o2", "c2")
    aggregate.add_item("o2", "i9", 9)
    after = aggregate.rebuild_state("o1")

    assert before == after


def test_items_without_order_fold_to_empty_identity(aggregate):
    """Items may be added before an order is placed; consistency is a read-side concern."""
    aggregate.add_item("o1", "i1", 2)
    aggregate.add_item("o1", "i1", 2)
    state = aggregate.rebuild_state("o1")

    assert state.is_empty
    assert state.items == (LineItem(item_id="i1", quantity=2), LineItem(item_id="i1", quantity=2))


def test_quantity_is_not_range_checked(aggregate):
    aggregate.place_order("o1", "c1")
    aggregate.add_item("o1", "i1", 0)
    aggregate.add_item("o1", "i2", -3)
    state = aggregate.rebuild_state("o1")
    assert [i.quantity for i in state.items] == [0, -3]


def test_second_order_placed_overwrites_identity(aggregate, event_log):
    later = datetime(2025, 1, 1, tzinfo=timezone.utc)
    aggregate.place_order("o1", "c1")
    event_log.append(OrderPlaced(order_id="o1", customer_id="c2", created_at=later))
    state = aggregate.rebuild_state("o1")
    assert state.customer_id == "c2"
    assert state.created_at == later


def test_invalid_intent_appends_nothing(aggregate, event_log):
    with pytest.raises(ValidationError):
        aggregate.place_order("", "c1")
    with pytest.raises(ValidationError):
        aggregate.add_item("o1", "i1", "lots")
    with pytest.raises(ValidationError):
        aggregate.add_item("o1", None, 1)
    assert event_log.version == 0


def test_apply_event_is_pure():
    initial = OrderState.empty()
    event = ItemAdded(order_id="o1", item_id="i1", quantity=1)

    result = apply_event(initial, event)

    assert initial.items == ()
    assert result.items == (LineItem(item_id="i1", quantity=1),)


def test_replay_from_initial_state():
    initial = OrderState(order_id="o1", customer_id="c1", created_at=T)
    state = replay([ItemAdded(order_id="o1", item_id="i1", quantity=1)], initial=initial)
    assert state.order_id == "o1"
    assert len(state.items) == 1


def test_rebuilt_state_items_cannot_be_changed():
    seed = OrderState(order_id="o1", customer_id="c1", created_at=T, items=[LineItem(item_id="i0", quantity=1)])
    state = replay([OrderPlaced(order_id="o1", customer_id="c2", created_at=T)], initial=seed)

    assert isinstance(state.items, tuple)
    with pytest.raises(AttributeError):
        state.items.append(LineItem(item_id="i1", quantity=1))

    grown = replay([ItemAdded(order_id="o1", item_id="i1", quantity=1)], initial=state)
    assert seed.items == (LineItem(item_id="i0", quantity=1),)
    assert len(grown.items) == 2


def test_place_order_survives_failing_observer():
    seen = []

    def broken(event, version):
        raise RuntimeError("observer down")

    event_log = EventLog([broken, lambda event, version: seen.append(version)])
    aggregate = OrderAggregate(event_log, clock=lambda: T)

    placed = aggregate.place_order("o1", "c1")

    assert event_log.version == 1
    assert seen == [1]
    assert aggregate.rebuild_state("o1").created_at == placed.created_at


def test_apply_event_rejects_unknown_variant():
    class OrderShipped(DomainEvent):
        order_id: str

    with pytest.raises(UnhandledEventError):
        apply_event(OrderState.empty(), OrderShipped(order_id="o1"))


def test_reducer_covers_every_event_variant(monkeypatch):
    from order_sourcing import aggregate as aggregate_module

    aggregate_module._check_exhaustive()

    monkeypatch.delitem(aggregate_module._HANDLERS, ItemAdded)
    with pytest.raises(UnhandledEventError, match="ItemAdded"):
        aggregate_module._check_exhaustive()
