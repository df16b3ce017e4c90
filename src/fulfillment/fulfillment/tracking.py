"""Fulfillment tracking.

Moves a shipped order along the carrier leg from tracking updates, either
a single status or a carrier's tracking history.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

import structlog

from fulfillment.carrier.models import TrackingEvent, TrackingStatus
from fulfillment.exceptions import ValidationError
from fulfillment.fulfillment.fulfillment import (
    FulfillmentOrder,
    FulfillmentStatus,
    can_transition,
    transition,
)

logger = structlog.get_logger(__name__)

TRACKING_STATUSES = (
    FulfillmentStatus.IN_TRANSIT,
    FulfillmentStatus.OUT_FOR_DELIVERY,
    FulfillmentStatus.DELIVERED,
)

_CARRIER_STATUS_MAP = {
    TrackingStatus.IN_TRANSIT: FulfillmentStatus.IN_TRANSIT,
    TrackingStatus.OUT_FOR_DELIVERY: FulfillmentStatus.OUT_FOR_DELIVERY,
    TrackingStatus.DELIVERED: FulfillmentStatus.DELIVERED,
}


def update_tracking_status(order: FulfillmentOrder, status: FulfillmentStatus | str) -> FulfillmentOrder:
    try:
        status = FulfillmentStatus(status)
    except ValueError:
        raise ValidationError({"status": [f"Unknown fulfillment status: {status}"]}) from None
    if status not in TRACKING_STATUSES:
        raise ValidationError({"status": [f"{status.value} is not a tracking status"]})

    changes = {}
    if status == FulfillmentStatus.DELIVERED:
        changes["shipping"] = order.shipping.model_copy(update={"actual_delivery": datetime.now(UTC)})
    return transition(order, status, **changes)


def apply_tracking_events(order: FulfillmentOrder, events: Iterable[TrackingEvent]) -> FulfillmentOrder:
    """Replay carrier events oldest first, applying each legal status step.

    Events that map to no fulfillment status, or that would move the order
    backwards, are skipped.
    """
    updated = order
    for event in sorted(events, key=lambda e: e.timestamp):
        target = _CARRIER_STATUS_MAP.get(event.status)
        if target is None or target == updated.status:
            continue
        if not can_transition(updated.status, target):
            logger.debug(
                "Tracking event skipped",
                fulfillment_id=order.id,
                current=updated.status.value,
                carrier_status=event.status.value,
            )
            continue
        updated = update_tracking_status(updated, target)
    return updated
