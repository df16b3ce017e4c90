"""Fulfillment shipping.

Records the carrier handoff when the shipment leaves the warehouse, and
copies a purchased label onto the order.
"""

from datetime import UTC, datetime
from typing import Any

from fulfillment.carrier.models import ShippingLabel
from fulfillment.fulfillment.fulfillment import (
    FulfillmentOrder,
    FulfillmentStatus,
    ShippingInfo,
    touch,
    transition,
)


def _merged(current: ShippingInfo, changes: ShippingInfo | dict[str, Any]) -> ShippingInfo:
    if isinstance(changes, ShippingInfo):
        changes = changes.model_dump(exclude_unset=True)
    return ShippingInfo.model_validate({**current.model_dump(), **changes})


def ship_order(order: FulfillmentOrder, shipping_info: ShippingInfo | dict[str, Any]) -> FulfillmentOrder:
    """Hand the order to the carrier, merging in the supplied shipping fields."""
    shipping = _merged(order.shipping, shipping_info).model_copy(update={"shipped_at": datetime.now(UTC)})
    return transition(order, FulfillmentStatus.SHIPPED, shipping=shipping)


def apply_label(order: FulfillmentOrder, label: ShippingLabel) -> FulfillmentOrder:
    """Record a generated label's details without changing status."""
    shipping = _merged(
        order.shipping,
        {
            "carrier": label.carrier,
            "service": label.service,
            "tracking_number": label.tracking_number,
            "label_url": label.label_url,
            "label_format": label.label_format,
            "rate": label.rate,
            "currency": label.currency,
            "estimated_delivery": label.estimated_delivery,
        },
    )
    return touch(order, shipping=shipping)
