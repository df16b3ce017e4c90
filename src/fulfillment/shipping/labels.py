"""Label and tracking service.

Routes label purchase, tracking, webhooks, cancellation, pickups and
address checks to the carrier adapter for a tenant's carrier configuration.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from fulfillment.carrier import CarrierRegistry, default_registry, get_adapter
from fulfillment.carrier.addresses import check_address
from fulfillment.carrier.models import (
    Address,
    AddressValidationResult,
    CancellationResult,
    CarrierConfig,
    CarrierType,
    PickupConfirmation,
    ShipmentRequest,
    ShippingLabel,
    TrackingEvent,
    WebhookEvent,
)
from fulfillment.carrier.port import CarrierAdapter
from fulfillment.exceptions import CarrierDisabled, FulfillmentError, InvalidAddress

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LabelFailure:
    request: ShipmentRequest
    error: str
    retryable: bool


@dataclass(frozen=True)
class LabelBatchResult:
    success: list[ShippingLabel] = field(default_factory=list)
    failed: list[LabelFailure] = field(default_factory=list)


class LabelService:
    def __init__(self, carriers: Iterable[CarrierConfig] = (), registry: CarrierRegistry | None = None):
        self.registry = registry if registry is not None else default_registry()
        self._configs = {config.carrier: config for config in carriers}

    def adapter_for(self, carrier: CarrierType | str) -> CarrierAdapter:
        """Adapter for ``carrier`` using its configured settings when known."""
        carrier = CarrierType(carrier)
        config = self._configs.get(carrier) or CarrierConfig(id=f"default-{carrier.value}", carrier=carrier)
        adapter = get_adapter(config, self.registry)
        if adapter is None:
            raise CarrierDisabled({"carrier": [f"No adapter available for {carrier.value}"]})
        return adapter

    # -------------------------------------------------------------------
    # Labels
    # -------------------------------------------------------------------
    async def generate_shipping_label(self, config: CarrierConfig, request: ShipmentRequest) -> ShippingLabel:
        if not config.enabled:
            raise CarrierDisabled({"carrier": [f"Carrier {config.name or config.carrier.value} is not enabled"]})
        if config.carrier != request.carrier:
            raise CarrierDisabled(
                {"carrier": [f"Configuration {config.id} is for {config.carrier.value}, not {request.carrier.value}"]}
            )

        validation = check_address(request.to_address)
        if not validation.is_valid:
            raise InvalidAddress(list(validation.errors))

        adapter = get_adapter(config, self.registry)
        if adapter is None:
            raise CarrierDisabled({"carrier": [f"No adapter available for {config.carrier.value}"]})

        label = await adapter.create_label(request)
        logger.info(
            "Shipping label generated",
            carrier=label.carrier.value,
            service=label.service,
            tracking_number=label.tracking_number,
            rate=label.rate,
        )
        return label

    async def batch_generate_labels(
        self,
        config: CarrierConfig,
        requests: Iterable[ShipmentRequest],
    ) -> LabelBatchResult:
        """Generate labels concurrently; each failure is recorded, not raised."""

        async def _generate(request: ShipmentRequest) -> ShippingLabel | LabelFailure:
            try:
                return await self.generate_shipping_label(config, request)
            except FulfillmentError as exc:
                return LabelFailure(request=request, error=exc.first_message(), retryable=exc.retryable)
            except Exception as exc:
                logger.warning("Label generation failed", carrier=config.carrier.value, error=str(exc))
                return LabelFailure(request=request, error=str(exc) or type(exc).__name__, retryable=True)

        outcomes = await asyncio.gather(*(_generate(r) for r in requests))
        result = LabelBatchResult()
        for outcome in outcomes:
            if isinstance(outcome, LabelFailure):
                result.failed.append(outcome)
            else:
                result.success.append(outcome)
        return result

    async def cancel_shipment(self, carrier: CarrierType | str, tracking_number: str) -> CancellationResult:
        result = await self.adapter_for(carrier).cancel(tracking_number)
        logger.info(
            "Shipment cancellation requested",
            tracking_number=tracking_number,
            cancelled=result.cancelled,
            refund_status=result.refund_status.value,
        )
        return result

    async def schedule_pickup(
        self,
        carrier: CarrierType | str,
        address: Address,
        pickup_date: datetime,
        package_count: int,
        total_weight: float,
    ) -> PickupConfirmation:
        return await self.adapter_for(carrier).schedule_pickup(address, pickup_date, package_count, total_weight)

    async def validate_address(
        self, address: Address, carrier: CarrierType | str | None = None
    ) -> AddressValidationResult:
        if carrier is None:
            return check_address(address)
        return await self.adapter_for(carrier).validate_address(address)

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    async def track_package(self, carrier: CarrierType | str, tracking_number: str) -> list[TrackingEvent]:
        """Tracking history, oldest event first."""
        events = await self.adapter_for(carrier).track(tracking_number)
        return sorted(events, key=lambda e: e.timestamp)

    def handle_webhook_event(self, payload: dict[str, Any], carrier: CarrierType | str) -> WebhookEvent | None:
        """Normalize a carrier webhook; unparseable payloads and unknown carriers yield None."""
        try:
            event = self.adapter_for(carrier).parse_webhook(payload)
        except (FulfillmentError, KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
            logger.warning(
                "Could not parse carrier webhook",
                carrier=getattr(carrier, "value", carrier),
                error=str(exc),
            )
            return None

        logger.info(
            "Carrier webhook received",
            carrier=event.carrier.value,
            tracking_number=event.tracking_number,
            status=event.status.value,
        )
        return event
