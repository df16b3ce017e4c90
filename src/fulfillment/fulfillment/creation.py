"""Fulfillment creation from a sales order."""

from datetime import UTC, datetime
from uuid import uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field

from fulfillment.exceptions import ValidationError
from fulfillment.fulfillment.fulfillment import FulfillmentItem, FulfillmentOrder, FulfillmentStatus, Priority

logger = structlog.get_logger(__name__)


class SalesOrderLine(BaseModel):
    """A line of the originating sales order, as supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    product_id: str
    product_name: str = ""
    quantity: int = Field(ge=1)
    location: str | None = None
    barcode: str | None = None


class SalesOrder(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    items: tuple[SalesOrderLine, ...]
    customer_id: str | None = None


def create_fulfillment_order(
    sales_order: SalesOrder,
    priority: Priority | str = Priority.NORMAL,
    warehouse: str | None = None,
) -> FulfillmentOrder:
    """Create a new fulfillment order with zeroed pick/pack counters."""
    if not sales_order.items:
        raise ValidationError({"items": ["Sales order has no items to fulfill"]})

    items = tuple(
        FulfillmentItem(
            order_item_id=line.id or f"{line.product_id}-{index}",
            product_id=line.product_id,
            product_name=line.product_name,
            quantity=line.quantity,
            location=line.location,
            barcode=line.barcode,
        )
        for index, line in enumerate(sales_order.items, start=1)
    )

    now = datetime.now(UTC)
    order = FulfillmentOrder(
        id=f"FO-{uuid4().hex[:12].upper()}",
        order_id=sales_order.id,
        status=FulfillmentStatus.NEW,
        items=items,
        priority=Priority(priority),
        warehouse=warehouse,
        created_at=now,
        updated_at=now,
    )
    logger.info(
        "Fulfillment order created",
        fulfillment_id=order.id,
        order_id=order.order_id,
        item_count=len(items),
    )
    return order
