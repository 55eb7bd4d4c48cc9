"""
Command-line demo: places an order, adds items, rebuilds the order from its
events and prints the reconstructed state.
"""
import argparse
import logging
import sys
from typing import List, Tuple

from pydantic import ValidationError

from .factories import create_order_aggregate, resolve_level

DEFAULT_ITEMS = ["item-789:2", "item-101:5"]


def _parse_item(value: str) -> Tuple[str, int]:
    item_id, sep, quantity = value.rpartition(":")
    if not sep or not item_id:
        raise argparse.ArgumentTypeError(f"expected ITEM_ID:QTY, got {value!r}")
    try:
        return item_id, int(quantity)
    except ValueError:
        raise argparse.ArgumentTypeError(f"quantity must be an integer, got {quantity!r}")


def _parse_level(value: str) -> int:
    try:
        return resolve_level(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown log level {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="order-sourcing", description=__doc__)
    parser.add_argument("--order-id", default="order-123")
    parser.add_argument("--customer-id", default="customer-456")
    parser.add_argument(
        "--item",
        dest="items",
        action="append",
        type=_parse_item,
        metavar="ITEM_ID:QTY",
        help="item to add; may be repeated (default: %s)" % " ".join(DEFAULT_ITEMS),
    )
    parser.add_argument("--log-level", type=_parse_level, default="INFO", help="level name or number")
    parser.add_argument("--quiet", action="store_true", help="do not log each stored event")
    return parser


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s: %(message)s")

    items = args.items or [_parse_item(value) for value in DEFAULT_ITEMS]
    aggregate = create_order_aggregate({"log_events": not args.quiet, "log_level": args.log_level})

    try:
        aggregate.place_order(args.order_id, args.customer_id)
        for item_id, quantity in items:
            aggregate.add_item(args.order_id, item_id, quantity)
    except ValidationError as e:
        print(f"Invalid event: {e}", file=sys.stderr)
        return 1

    state = aggregate.rebuild_state(args.order_id)
    print("Reconstructed order state:", state.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
