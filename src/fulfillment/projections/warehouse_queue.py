"""Warehouse queue — picker's work queue and packing documents."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from fulfillment.fulfillment.fulfillment import FulfillmentOrder, PackingBox, Priority

UNASSIGNED_LOCATION = "UNASSIGNED"

_PRIORITY_WEIGHT = {
    Priority.URGENT: 4,
    Priority.HIGH: 3,
    Priority.NORMAL: 2,
    Priority.LOW: 1,
}


class _View(BaseModel):
    model_config = ConfigDict(frozen=True)


class PickLine(_View):
    product_id: str
    product_name: str
    quantity: int
    order_ids: tuple[str, ...]


class PickLocation(_View):
    location: str
    items: tuple[PickLine, ...]


class PickingList(_View):
    order_ids: tuple[str, ...]
    locations: tuple[PickLocation, ...]
    total_items: int


class PackingSlipLine(_View):
    product_name: str
    quantity: int


class PackingSlip(_View):
    order_id: str
    fulfillment_id: str
    items: tuple[PackingSlipLine, ...]
    boxes: tuple[PackingBox, ...]
    total_weight: float | None = None


def generate_picking_list(orders: Iterable[FulfillmentOrder]) -> PickingList:
    """Outstanding units grouped by warehouse location, then product."""
    orders = list(orders)
    by_location: dict[str, dict[str, dict]] = {}
    total = 0

    for order in orders:
        for item in order.items:
            outstanding = item.remaining_to_pick
            if outstanding <= 0:
                continue
            total += outstanding
            products = by_location.setdefault(item.location or UNASSIGNED_LOCATION, {})
            line = products.setdefault(
                item.product_id,
                {"product_id": item.product_id, "product_name": item.product_name, "quantity": 0, "order_ids": []},
            )
            line["quantity"] += outstanding
            if order.order_id not in line["order_ids"]:
                line["order_ids"].append(order.order_id)

    locations = tuple(
        PickLocation(
            location=location,
            items=tuple(PickLine(**{**line, "order_ids": tuple(line["order_ids"])}) for line in products.values()),
        )
        for location, products in sorted(by_location.items())
    )
    return PickingList(order_ids=tuple(o.order_id for o in orders), locations=locations, total_items=total)


def generate_packing_slip(order: FulfillmentOrder) -> PackingSlip:
    return PackingSlip(
        order_id=order.order_id,
        fulfillment_id=order.id,
        items=tuple(PackingSlipLine(product_name=i.product_name, quantity=i.quantity) for i in order.items),
        boxes=order.packing.boxes,
        total_weight=order.packing.weight,
    )


def sort_by_priority(orders: Iterable[FulfillmentOrder]) -> list[FulfillmentOrder]:
    """Most urgent first, oldest first within a priority."""
    return sorted(orders, key=lambda o: (-_PRIORITY_WEIGHT[o.priority], o.created_at))
