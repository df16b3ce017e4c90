"""Fulfillment picking.

Handles the warehouse picking phase: assigning a picker, recording item
picks against ordered quantities, and completing the pick.
"""

from datetime import UTC, datetime

import structlog

from fulfillment.exceptions import IncompletePicking, ValidationError
from fulfillment.fulfillment.fulfillment import (
    FulfillmentOrder,
    FulfillmentStatus,
    PickRecord,
    touch,
    transition,
)

logger = structlog.get_logger(__name__)


def start_picking(order: FulfillmentOrder, picked_by: str) -> FulfillmentOrder:
    """Assign a warehouse picker and begin the picking process."""
    now = datetime.now(UTC)
    picking = order.picking.model_copy(update={"started_at": now, "picked_by": picked_by})
    return transition(order, FulfillmentStatus.PICKING, picking=picking, assigned_to=picked_by)


def pick_item(order: FulfillmentOrder, item_id: str, quantity: int) -> FulfillmentOrder:
    """Record ``quantity`` units of an item picked.

    The item's picked count never exceeds its ordered quantity; the audit
    record keeps the quantity the picker reported.
    """
    if order.status != FulfillmentStatus.PICKING:
        raise ValidationError({"status": ["Items can only be picked during picking phase"]})
    if quantity <= 0:
        raise ValidationError({"quantity": ["Picked quantity must be positive"]})

    item = order.find_item(item_id)
    picked = min(item.picked + quantity, item.quantity)
    if item.picked + quantity > item.quantity:
        logger.warning(
            "Over-pick clamped to ordered quantity",
            fulfillment_id=order.id,
            item_id=item_id,
            requested=quantity,
            ordered=item.quantity,
        )

    now = datetime.now(UTC)
    record = PickRecord(item_id=item_id, quantity=quantity, picked_at=now)
    picking = order.picking.model_copy(update={"items": order.picking.items + (record,)})
    items = order.replace_items({item_id: item.model_copy(update={"picked": picked})})
    return touch(order, items=items, picking=picking)


def complete_picking(order: FulfillmentOrder, notes: str | None = None) -> FulfillmentOrder:
    """Complete picking. Every item must be fully picked."""
    short = [i for i in order.items if not i.fully_picked]
    if short:
        raise IncompletePicking(
            {"items": [f"Item {i.product_name or i.order_item_id} is not fully picked" for i in short]}
        )

    now = datetime.now(UTC)
    update = {"completed_at": now}
    if notes is not None:
        update["notes"] = notes
    return transition(order, FulfillmentStatus.PICKED, picking=order.picking.model_copy(update=update))
