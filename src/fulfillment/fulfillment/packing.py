"""Fulfillment packing.

Handles the packing phase: assigning a packer, recording boxes and the
units packed into them, and completing packing with the final parcel
weight and dimensions.
"""

from collections import Counter
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from fulfillment.exceptions import IncompletePacking, OverPacking, ValidationError
from fulfillment.fulfillment.fulfillment import (
    Dimensions,
    FulfillmentOrder,
    FulfillmentStatus,
    PackingBox,
    touch,
    transition,
)

logger = structlog.get_logger(__name__)


def start_packing(order: FulfillmentOrder, packed_by: str) -> FulfillmentOrder:
    """Assign a packer and begin the packing process."""
    now = datetime.now(UTC)
    packing = order.packing.model_copy(update={"started_at": now, "packed_by": packed_by})
    return transition(order, FulfillmentStatus.PACKING, packing=packing, assigned_to=packed_by)


def add_packing_box(order: FulfillmentOrder, box: PackingBox) -> FulfillmentOrder:
    """Record a packed box and count its contents against each item.

    The whole box is rejected if any content line is invalid; an item can
    never be packed beyond what was picked.
    """
    if order.status != FulfillmentStatus.PACKING:
        raise ValidationError({"status": ["Boxes can only be added during packing phase"]})

    added: Counter[str] = Counter()
    for content in box.items:
        if content.quantity <= 0:
            raise ValidationError({"quantity": ["Packed quantity must be positive"]})
        order.find_item(content.item_id)
        added[content.item_id] += content.quantity

    updated = {}
    for item_id, quantity in added.items():
        item = order.find_item(item_id)
        if item.packed + quantity > item.picked:
            raise OverPacking(
                {"items": [f"Cannot pack {item.packed + quantity} of {item_id}; only {item.picked} picked"]}
            )
        updated[item_id] = item.model_copy(update={"packed": item.packed + quantity})

    new_box = box.model_copy(update={"id": f"BOX-{uuid4().hex[:12].upper()}"})
    packing = order.packing.model_copy(update={"boxes": order.packing.boxes + (new_box,)})
    logger.info("Packing box added", fulfillment_id=order.id, box_id=new_box.id, units=sum(added.values()))
    return touch(order, items=order.replace_items(updated), packing=packing)


def complete_packing(
    order: FulfillmentOrder,
    weight: float,
    dimensions: Dimensions,
    notes: str | None = None,
) -> FulfillmentOrder:
    """Complete packing. Every item must be fully packed."""
    short = [i for i in order.items if not i.fully_packed]
    if short:
        raise IncompletePacking(
            {"items": [f"Item {i.product_name or i.order_item_id} is not fully packed" for i in short]}
        )

    now = datetime.now(UTC)
    update = {"completed_at": now, "weight": weight, "dimensions": dimensions}
    if notes is not None:
        update["notes"] = notes
    return transition(order, FulfillmentStatus.PACKED, packing=order.packing.model_copy(update=update))
