"""Order lifecycle transitions outside the warehouse phases.

Payment and readiness gates before picking, cancellation, and marking a
delivered shipment as returned.
"""

import structlog

from fulfillment.fulfillment.fulfillment import FulfillmentOrder, FulfillmentStatus, transition

logger = structlog.get_logger(__name__)


def mark_payment_received(order: FulfillmentOrder) -> FulfillmentOrder:
    return transition(order, FulfillmentStatus.PAYMENT_RECEIVED)


def mark_ready_for_fulfillment(order: FulfillmentOrder) -> FulfillmentOrder:
    return transition(order, FulfillmentStatus.READY_FOR_FULFILLMENT)


def cancel_order(order: FulfillmentOrder, reason: str) -> FulfillmentOrder:
    """Cancel an order that has not yet left the carrier's first scan."""
    cancelled = transition(order, FulfillmentStatus.CANCELLED, cancellation_reason=reason)
    logger.info("Fulfillment cancelled", fulfillment_id=order.id, order_id=order.order_id, reason=reason)
    return cancelled


def mark_returned(order: FulfillmentOrder) -> FulfillmentOrder:
    """Record that the shipment came back to the warehouse."""
    return transition(order, FulfillmentStatus.RETURNED)
