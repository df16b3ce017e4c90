"""Tracking sync over active shipments.

Polls the carrier for every shipped order still on the road and advances
its status from the tracking history. One order failing to track never
stops the sweep.
"""

import asyncio
from dataclasses import dataclass, field

import structlog

from fulfillment.config import get_settings
from fulfillment.fulfillment.fulfillment import ACTIVE_SHIPMENT_STATUSES, FulfillmentOrder
from fulfillment.fulfillment.tracking import apply_tracking_events
from fulfillment.repository import FulfillmentRepository
from fulfillment.shipping.labels import LabelService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SyncFailure:
    fulfillment_id: str
    error: str


@dataclass(frozen=True)
class SyncResult:
    synced: list[FulfillmentOrder] = field(default_factory=list)
    failed: list[SyncFailure] = field(default_factory=list)


async def sync_active_shipments(
    repository: FulfillmentRepository,
    label_service: LabelService,
    max_concurrency: int | None = None,
) -> SyncResult:
    """Track every active shipment and save the orders whose status moved."""
    semaphore = asyncio.Semaphore(max_concurrency or get_settings().max_carrier_concurrency)

    async def _sync(order: FulfillmentOrder) -> FulfillmentOrder | SyncFailure:
        shipping = order.shipping
        if shipping.carrier is None or not shipping.tracking_number:
            return SyncFailure(order.id, "Order has no carrier tracking number")
        async with semaphore:
            try:
                events = await label_service.track_package(shipping.carrier, shipping.tracking_number)
                updated = apply_tracking_events(order, events)
            except Exception as exc:
                logger.warning("Tracking sync failed", fulfillment_id=order.id, error=str(exc))
                return SyncFailure(order.id, str(exc) or type(exc).__name__)

        if updated.status != order.status:
            repository.add(updated)
        return updated

    orders = repository.list_by_status(*ACTIVE_SHIPMENT_STATUSES)
    outcomes = await asyncio.gather(*(_sync(order) for order in orders))

    result = SyncResult()
    for outcome in outcomes:
        if isinstance(outcome, SyncFailure):
            result.failed.append(outcome)
        else:
            result.synced.append(outcome)

    logger.info("Tracking sync complete", synced=len(result.synced), failed=len(result.failed))
    return result
