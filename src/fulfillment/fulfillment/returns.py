"""Return requests (RMAs) raised against a fulfillment order.

Return requests live beside the order's own state machine: creating or
processing one never changes the order's status. Each request follows its
own transition table:

    REQUESTED → {APPROVED, REJECTED}
    APPROVED → RECEIVED
    RECEIVED → PROCESSED
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from fulfillment.exceptions import InvalidReturnTransition, ValidationError
from fulfillment.fulfillment.fulfillment import (
    FulfillmentOrder,
    ReturnItem,
    ReturnRequest,
    ReturnStatus,
    touch,
)

logger = structlog.get_logger(__name__)

_VALID_RETURN_TRANSITIONS = {
    ReturnStatus.REQUESTED: {ReturnStatus.APPROVED, ReturnStatus.REJECTED},
    ReturnStatus.APPROVED: {ReturnStatus.RECEIVED},
    ReturnStatus.RECEIVED: {ReturnStatus.PROCESSED},
    ReturnStatus.REJECTED: set(),  # terminal
    ReturnStatus.PROCESSED: set(),  # terminal
}


def create_return_request(
    order: FulfillmentOrder,
    items: Iterable[ReturnItem],
    reason: str,
    requested_by: str,
) -> ReturnRequest:
    now = datetime.now(UTC)
    request = ReturnRequest(
        id=f"RET-{uuid4().hex[:12].upper()}",
        fulfillment_order_id=order.id,
        order_id=order.order_id,
        items=tuple(items),
        reason=reason,
        status=ReturnStatus.REQUESTED,
        requested_by=requested_by,
        created_at=now,
        updated_at=now,
    )
    logger.info("Return requested", return_id=request.id, fulfillment_id=order.id, item_count=len(request.items))
    return request


def process_return_request(
    request: ReturnRequest,
    status: ReturnStatus | str,
    approved_by: str | None = None,
    refund_amount: float | None = None,
    restock_items: bool | None = None,
    notes: str | None = None,
) -> ReturnRequest:
    """Advance a return request one step, stamping the fields for that step."""
    status = ReturnStatus(status)
    if status not in _VALID_RETURN_TRANSITIONS[request.status]:
        raise InvalidReturnTransition(request.status, status)

    now = datetime.now(UTC)
    update = {"status": status, "updated_at": now}
    if status == ReturnStatus.APPROVED and approved_by:
        update["approved_by"] = approved_by
    elif status == ReturnStatus.RECEIVED:
        update["received_at"] = now
    elif status == ReturnStatus.PROCESSED:
        update["processed_at"] = now
        update["refund_amount"] = refund_amount
        update["restock_items"] = restock_items
    if notes:
        update["notes"] = notes

    logger.info(
        "Return request updated",
        return_id=request.id,
        from_status=request.status.value,
        to_status=status.value,
    )
    return request.model_copy(update=update)


def attach_return(order: FulfillmentOrder, request: ReturnRequest) -> FulfillmentOrder:
    """Record a new return request on its order."""
    if request.fulfillment_order_id != order.id:
        raise ValidationError({"return": [f"Return {request.id} belongs to {request.fulfillment_order_id}"]})
    if any(r.id == request.id for r in order.returns):
        raise ValidationError({"return": [f"Return {request.id} is already attached"]})
    return touch(order, returns=order.returns + (request,))


def replace_return(order: FulfillmentOrder, request: ReturnRequest) -> FulfillmentOrder:
    """Swap in an updated copy of a return already on the order."""
    if not any(r.id == request.id for r in order.returns):
        raise ValidationError({"return": [f"Return {request.id} is not attached to {order.id}"]})
    return touch(order, returns=tuple(request if r.id == request.id else r for r in order.returns))
