"""Health check of a fulfillment order against its current status."""

from pydantic import BaseModel, ConfigDict

from fulfillment.fulfillment.fulfillment import FulfillmentOrder, FulfillmentStatus


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def validate_fulfillment_order(order: FulfillmentOrder) -> ValidationReport:
    """Report problems with ``order``. Findings are returned, never raised."""
    errors = []
    warnings = []
    status = order.status

    if not order.items:
        errors.append("Fulfillment order must have at least one item")

    if status in (FulfillmentStatus.READY_FOR_FULFILLMENT, FulfillmentStatus.PICKING):
        for item in order.items:
            if not item.location:
                warnings.append(f"Item {item.product_name} does not have a warehouse location assigned")

    if status in (FulfillmentStatus.PICKED, FulfillmentStatus.PACKING):
        for item in order.items:
            if item.picked != item.quantity:
                errors.append(f"Item {item.product_name} is not fully picked ({item.picked}/{item.quantity})")

    if status in (FulfillmentStatus.PACKED, FulfillmentStatus.SHIPPED):
        for item in order.items:
            if item.packed != item.quantity:
                errors.append(f"Item {item.product_name} is not fully packed ({item.packed}/{item.quantity})")
        if not order.packing.weight or order.packing.weight <= 0:
            warnings.append("Package weight is not set")
        if order.packing.dimensions is None:
            warnings.append("Package dimensions are not set")

    if status in (FulfillmentStatus.SHIPPED, FulfillmentStatus.IN_TRANSIT):
        if not order.shipping.carrier:
            errors.append("Shipping carrier is not selected")
        if not order.shipping.tracking_number:
            warnings.append("Tracking number is not set")

    return ValidationReport(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
