"""Fulfillment command handlers over a repository.

Each handler loads the order by id, applies one domain operation and saves
the result, so callers working by identifier never hold stale values.
"""

from fulfillment.carrier.models import ShippingLabel
from fulfillment.fulfillment.creation import SalesOrder, create_fulfillment_order
from fulfillment.fulfillment.fulfillment import Dimensions, FulfillmentOrder, PackingBox, Priority, ShippingInfo
from fulfillment.fulfillment.lifecycle import (
    cancel_order,
    mark_payment_received,
    mark_ready_for_fulfillment,
)
from fulfillment.fulfillment.packing import add_packing_box, complete_packing, start_packing
from fulfillment.fulfillment.picking import complete_picking, pick_item, start_picking
from fulfillment.fulfillment.shipping import apply_label, ship_order
from fulfillment.fulfillment.tracking import update_tracking_status
from fulfillment.repository import FulfillmentRepository


class FulfillmentHandler:
    def __init__(self, repository: FulfillmentRepository):
        self.repository = repository

    def _apply(self, fulfillment_id: str, operation, *args, **kwargs) -> FulfillmentOrder:
        order = operation(self.repository.get(fulfillment_id), *args, **kwargs)
        self.repository.add(order)
        return order

    def create_fulfillment(
        self,
        sales_order: SalesOrder,
        priority: Priority | str = Priority.NORMAL,
        warehouse: str | None = None,
    ) -> str:
        order = create_fulfillment_order(sales_order, priority=priority, warehouse=warehouse)
        self.repository.add(order)
        return order.id

    def mark_payment_received(self, fulfillment_id: str) -> FulfillmentOrder:
        return self._apply(fulfillment_id, mark_payment_received)

    def mark_ready(self, fulfillment_id: str) -> FulfillmentOrder:
        return self._apply(fulfillment_id, mark_ready_for_fulfillment)

    def start_picking(self, fulfillment_id: str, picked_by: str) -> FulfillmentOrder:
        return self._apply(fulfillment_id, start_picking, picked_by)

    def pick_item(self, fulfillment_id: str, item_id: str, quantity: int) -> FulfillmentOrder:
        return self._apply(fulfillment_id, pick_item, item_id, quantity)

    def complete_picking(self, fulfillment_id: str, notes: str | None = None) -> FulfillmentOrder:
        return self._apply(fulfillment_id, complete_picking, notes)

    def start_packing(self, fulfillment_id: str, packed_by: str) -> FulfillmentOrder:
        return self._apply(fulfillment_id, start_packing, packed_by)

    def add_packing_box(self, fulfillment_id: str, box: PackingBox) -> FulfillmentOrder:
        return self._apply(fulfillment_id, add_packing_box, box)

    def complete_packing(
        self,
        fulfillment_id: str,
        weight: float,
        dimensions: Dimensions,
        notes: str | None = None,
    ) -> FulfillmentOrder:
        return self._apply(fulfillment_id, complete_packing, weight, dimensions, notes)

    def apply_label(self, fulfillment_id: str, label: ShippingLabel) -> FulfillmentOrder:
        return self._apply(fulfillment_id, apply_label, label)

    def ship(self, fulfillment_id: str, shipping_info: ShippingInfo | dict) -> FulfillmentOrder:
        return self._apply(fulfillment_id, ship_order, shipping_info)

    def update_tracking(self, fulfillment_id: str, status: str) -> FulfillmentOrder:
        return self._apply(fulfillment_id, update_tracking_status, status)

    def cancel(self, fulfillment_id: str, reason: str) -> FulfillmentOrder:
        return self._apply(fulfillment_id, cancel_order, reason)
