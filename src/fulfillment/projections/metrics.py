"""Fulfillment metrics — operational KPIs over a set of orders."""

from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from fulfillment.config import get_settings
from fulfillment.fulfillment.fulfillment import FulfillmentOrder, FulfillmentStatus


class FulfillmentMetrics(BaseModel):
    """Durations are in minutes; accuracy and rates are percentages."""

    model_config = ConfigDict(frozen=True)

    total_orders: int
    orders_by_status: dict[str, int]
    average_pick_time: float
    average_pack_time: float
    average_ship_time: float
    pick_accuracy: float
    on_time_shipment: float
    return_rate: float


def _minutes(start, end) -> float:
    return (end - start).total_seconds() / 60


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_metrics(
    orders: Iterable[FulfillmentOrder],
    on_time_threshold_minutes: int | None = None,
) -> FulfillmentMetrics:
    threshold = on_time_threshold_minutes or get_settings().on_time_threshold_minutes
    orders = list(orders)

    by_status = Counter(o.status for o in orders)
    pick_times = [
        _minutes(o.picking.started_at, o.picking.completed_at)
        for o in orders
        if o.picking.started_at and o.picking.completed_at
    ]
    pack_times = [
        _minutes(o.packing.started_at, o.packing.completed_at)
        for o in orders
        if o.packing.started_at and o.packing.completed_at
    ]
    ship_times = [_minutes(o.created_at, o.shipping.shipped_at) for o in orders if o.shipping.shipped_at]

    ordered = sum(i.quantity for o in orders for i in o.items)
    correct = sum(min(i.picked, i.quantity) for o in orders for i in o.items)
    on_time = sum(1 for t in ship_times if t <= threshold)
    returns = sum(len(o.returns) for o in orders)

    return FulfillmentMetrics(
        total_orders=len(orders),
        orders_by_status={status.value: by_status.get(status, 0) for status in FulfillmentStatus},
        average_pick_time=_mean(pick_times),
        average_pack_time=_mean(pack_times),
        average_ship_time=_mean(ship_times),
        pick_accuracy=correct / ordered * 100 if ordered else 100.0,
        on_time_shipment=on_time / len(ship_times) * 100 if ship_times else 100.0,
        return_rate=returns / len(orders) * 100 if orders else 0.0,
    )
