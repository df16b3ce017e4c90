"""Fulfillment order — the core value of the fulfillment domain.

A FulfillmentOrder tracks one sales order from payment through picking,
packing, shipping and delivery, plus any returns raised against it. Orders
are immutable: every operation returns a new order and leaves its input
untouched, so a rejected operation has no effect at all.

State Machine:
    NEW → PAYMENT_RECEIVED → READY_FOR_FULFILLMENT → PICKING → PICKED
        → PACKING → PACKED → SHIPPED → IN_TRANSIT → OUT_FOR_DELIVERY → DELIVERED
    PICKING → READY_FOR_FULFILLMENT, PICKED → PICKING, PACKING → PICKED,
    PACKED → PACKING  (step back to redo a phase)
    IN_TRANSIT → DELIVERED
    {IN_TRANSIT, OUT_FOR_DELIVERY, DELIVERED} → RETURNED
    {NEW … SHIPPED} → CANCELLED
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from fulfillment.carrier.models import CarrierType, LabelFormat
from fulfillment.carrier.units import LengthUnit
from fulfillment.exceptions import InvalidTransition, ItemNotFound

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class FulfillmentStatus(Enum):
    NEW = "new"
    PAYMENT_RECEIVED = "payment_received"
    READY_FOR_FULFILLMENT = "ready_for_fulfillment"
    PICKING = "picking"
    PICKED = "picked"
    PACKING = "packing"
    PACKED = "packed"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class Priority(Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class ReturnStatus(Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    RECEIVED = "received"
    PROCESSED = "processed"


_VALID_TRANSITIONS = {
    FulfillmentStatus.NEW: {FulfillmentStatus.PAYMENT_RECEIVED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.PAYMENT_RECEIVED: {FulfillmentStatus.READY_FOR_FULFILLMENT, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.READY_FOR_FULFILLMENT: {FulfillmentStatus.PICKING, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.PICKING: {
        FulfillmentStatus.PICKED,
        FulfillmentStatus.READY_FOR_FULFILLMENT,
        FulfillmentStatus.CANCELLED,
    },
    FulfillmentStatus.PICKED: {FulfillmentStatus.PACKING, FulfillmentStatus.PICKING, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.PACKING: {FulfillmentStatus.PACKED, FulfillmentStatus.PICKED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.PACKED: {FulfillmentStatus.SHIPPED, FulfillmentStatus.PACKING, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.SHIPPED: {FulfillmentStatus.IN_TRANSIT, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.IN_TRANSIT: {
        FulfillmentStatus.OUT_FOR_DELIVERY,
        FulfillmentStatus.DELIVERED,
        FulfillmentStatus.RETURNED,
    },
    FulfillmentStatus.OUT_FOR_DELIVERY: {FulfillmentStatus.DELIVERED, FulfillmentStatus.RETURNED},
    FulfillmentStatus.DELIVERED: {FulfillmentStatus.RETURNED},
    FulfillmentStatus.RETURNED: set(),  # terminal
    FulfillmentStatus.CANCELLED: set(),  # terminal
}

ACTIVE_SHIPMENT_STATUSES = frozenset(
    {FulfillmentStatus.SHIPPED, FulfillmentStatus.IN_TRANSIT, FulfillmentStatus.OUT_FOR_DELIVERY}
)


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Items and picking
# ---------------------------------------------------------------------------
class FulfillmentItem(_Value):
    """A single line item being fulfilled; ``0 <= packed <= picked <= quantity``."""

    order_item_id: str
    product_id: str
    product_name: str = ""
    quantity: int = Field(ge=1)
    picked: int = Field(default=0, ge=0)
    packed: int = Field(default=0, ge=0)
    location: str | None = None
    barcode: str | None = None

    @property
    def remaining_to_pick(self) -> int:
        return self.quantity - self.picked

    @property
    def fully_picked(self) -> bool:
        return self.picked == self.quantity

    @property
    def fully_packed(self) -> bool:
        return self.packed == self.quantity


class PickRecord(_Value):
    """One pick action, with the quantity the picker reported."""

    item_id: str
    quantity: int
    picked_at: datetime


class PickingInfo(_Value):
    started_at: datetime | None = None
    completed_at: datetime | None = None
    picked_by: str | None = None
    notes: str | None = None
    items: tuple[PickRecord, ...] = ()


# ---------------------------------------------------------------------------
# Packing
# ---------------------------------------------------------------------------
class Dimensions(_Value):
    length: float = Field(ge=0)
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    unit: LengthUnit = LengthUnit.IN


class BoxContent(_Value):
    item_id: str
    quantity: int


class PackingBox(_Value):
    id: str = ""
    weight: float = Field(ge=0)
    dimensions: Dimensions
    items: tuple[BoxContent, ...] = ()
    tracking_number: str | None = None


class PackingInfo(_Value):
    started_at: datetime | None = None
    completed_at: datetime | None = None
    packed_by: str | None = None
    notes: str | None = None
    weight: float | None = None
    dimensions: Dimensions | None = None
    boxes: tuple[PackingBox, ...] = ()


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------
class ShippingInsurance(_Value):
    amount: float = Field(ge=0)
    provider: str | None = None


class ShippingInfo(_Value):
    carrier: CarrierType | None = None
    service: str | None = None
    tracking_number: str | None = None
    label_url: str | None = None
    label_format: LabelFormat | None = None
    rate: float = 0.0
    currency: str = "USD"
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    shipped_at: datetime | None = None
    insurance: ShippingInsurance | None = None


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------
class ReturnItem(_Value):
    item_id: str
    quantity: int = Field(ge=1)
    reason: str = ""


class ReturnRequest(_Value):
    id: str
    fulfillment_order_id: str
    order_id: str
    items: tuple[ReturnItem, ...]
    reason: str
    status: ReturnStatus = ReturnStatus.REQUESTED
    requested_by: str
    approved_by: str | None = None
    received_at: datetime | None = None
    processed_at: datetime | None = None
    refund_amount: float | None = None
    restock_items: bool | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Fulfillment order
# ---------------------------------------------------------------------------
class FulfillmentOrder(_Value):
    id: str
    order_id: str
    status: FulfillmentStatus = FulfillmentStatus.NEW
    items: tuple[FulfillmentItem, ...] = ()
    picking: PickingInfo = Field(default_factory=PickingInfo)
    packing: PackingInfo = Field(default_factory=PackingInfo)
    shipping: ShippingInfo = Field(default_factory=ShippingInfo)
    returns: tuple[ReturnRequest, ...] = ()
    priority: Priority = Priority.NORMAL
    warehouse: str | None = None
    assigned_to: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    def find_item(self, item_id: str) -> FulfillmentItem:
        item = next((i for i in self.items if i.order_item_id == item_id), None)
        if item is None:
            raise ItemNotFound(item_id)
        return item

    def replace_items(self, updated: dict[str, FulfillmentItem]) -> tuple[FulfillmentItem, ...]:
        """Items with those keyed by ``order_item_id`` swapped in, order preserved."""
        return tuple(updated.get(i.order_item_id, i) for i in self.items)


# ---------------------------------------------------------------------------
# State transitions
# ---------------------------------------------------------------------------
def can_transition(current: FulfillmentStatus, target: FulfillmentStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


def transition(order: FulfillmentOrder, target: FulfillmentStatus, **changes: Any) -> FulfillmentOrder:
    """Move ``order`` to ``target``, applying ``changes`` in the same step.

    The only place an order's status changes.
    """
    if not can_transition(order.status, target):
        raise InvalidTransition(order.status, target)

    now = datetime.now(UTC)
    logger.info(
        "Fulfillment status changed",
        fulfillment_id=order.id,
        from_status=order.status.value,
        to_status=target.value,
    )
    return order.model_copy(update={"updated_at": now, **changes, "status": target})


def touch(order: FulfillmentOrder, **changes: Any) -> FulfillmentOrder:
    """Apply ``changes`` without a status change."""
    return order.model_copy(update={"updated_at": datetime.now(UTC), **changes})
