"""Delivery performance — carrier SLA monitoring view."""

from collections import defaultdict
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from fulfillment.carrier.models import CarrierType
from fulfillment.fulfillment.fulfillment import FulfillmentOrder


class CarrierPerformance(BaseModel):
    """Delivery performance for one carrier."""

    model_config = ConfigDict(frozen=True)

    carrier: CarrierType
    total_shipments: int = 0
    delivered_count: int = 0
    average_delivery_hours: float = 0.0
    on_time_delivery: float = 100.0


def delivery_performance(orders: Iterable[FulfillmentOrder]) -> list[CarrierPerformance]:
    """Per-carrier shipment and delivery statistics, ordered by carrier.

    A delivery is on time when it arrived no later than the carrier's
    estimate; deliveries without an estimate are not scored.
    """
    shipped = defaultdict(list)
    for order in orders:
        if order.shipping.carrier and order.shipping.shipped_at:
            shipped[order.shipping.carrier].append(order.shipping)

    views = []
    for carrier in sorted(shipped, key=lambda c: c.value):
        shipments = shipped[carrier]
        delivered = [s for s in shipments if s.actual_delivery]
        hours = [(s.actual_delivery - s.shipped_at).total_seconds() / 3600 for s in delivered]
        scored = [s for s in delivered if s.estimated_delivery]
        on_time = sum(1 for s in scored if s.actual_delivery <= s.estimated_delivery)
        views.append(
            CarrierPerformance(
                carrier=carrier,
                total_shipments=len(shipments),
                delivered_count=len(delivered),
                average_delivery_hours=sum(hours) / len(hours) if hours else 0.0,
                on_time_delivery=on_time / len(scored) * 100 if scored else 100.0,
            )
        )
    return views
