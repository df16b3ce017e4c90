"""Batch processing of one warehouse action across many orders.

Every order is attempted; a failure is recorded against its order and never
stops the rest of the batch. Results keep the input order.
"""

import concurrent.futures
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError as SchemaError

from fulfillment.config import get_settings
from fulfillment.exceptions import FulfillmentError, ValidationError
from fulfillment.fulfillment.fulfillment import FulfillmentOrder
from fulfillment.fulfillment.packing import start_packing
from fulfillment.fulfillment.picking import start_picking
from fulfillment.fulfillment.shipping import ship_order

logger = structlog.get_logger(__name__)

BatchAction = Callable[[FulfillmentOrder, dict[str, Any]], FulfillmentOrder]

_ACTIONS: dict[str, BatchAction] = {
    "pick": lambda order, params: start_picking(order, params["picked_by"]),
    "pack": lambda order, params: start_packing(order, params["packed_by"]),
    "ship": lambda order, params: ship_order(order, params["shipping_info"]),
}


@dataclass(frozen=True)
class BatchFailure:
    order: FulfillmentOrder
    error: str
    retryable: bool = False


@dataclass(frozen=True)
class BatchResult:
    success: list[FulfillmentOrder] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)


def _run(action: BatchAction, order: FulfillmentOrder, params: dict[str, Any]) -> FulfillmentOrder | BatchFailure:
    try:
        return action(order, params)
    except FulfillmentError as exc:
        return BatchFailure(order=order, error=exc.first_message(), retryable=exc.retryable)
    except KeyError as exc:
        return BatchFailure(order=order, error=f"Missing batch parameter: {exc.args[0]}")
    except SchemaError as exc:
        return BatchFailure(order=order, error=f"Invalid batch parameters: {exc.error_count()} error(s)")
    except Exception as exc:
        logger.warning("Batch action failed", order_id=order.id, error=str(exc), exc_info=True)
        return BatchFailure(order=order, error=str(exc) or type(exc).__name__)


def batch_process(
    orders: Sequence[FulfillmentOrder],
    action: str,
    params: dict[str, Any] | None = None,
    max_workers: int | None = None,
) -> BatchResult:
    """Apply ``action`` (pick, pack or ship) to every order concurrently."""
    params = params or {}
    handler = _ACTIONS.get(action)
    if handler is None:
        error = ValidationError({"action": [f"Unknown action: {action}"]})
        logger.warning("Unknown batch action", action=action, order_count=len(orders))
        return BatchResult(failed=[BatchFailure(order=o, error=error.first_message()) for o in orders])

    workers = max_workers or get_settings().batch_max_workers
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(lambda order: _run(handler, order, params), orders))

    result = BatchResult()
    for outcome in outcomes:
        if isinstance(outcome, BatchFailure):
            result.failed.append(outcome)
        else:
            result.success.append(outcome)

    logger.info(
        "Batch processed",
        action=action,
        succeeded=len(result.success),
        failed=len(result.failed),
    )
    return result
