"""Rate-card carrier — shared pricing and label model for the built-in adapters.

Each concrete carrier declares its per-pound rate, dimensional divisor,
service options, tracking prefix, status codes and webhook field names. The
pricing model is:

    billable lb = max(actual lb, dimensional lb)
    price       = billable lb * per-pound rate * zone factor * service multiplier

Domestic interstate shipments pay ``interstate_factor``; international
shipments use each service's international multiplier and transit days.
This is the seam where a real carrier API call replaces the rate card.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import structlog

from fulfillment.carrier.addresses import check_address
from fulfillment.carrier.models import (
    Address,
    AddressValidationResult,
    CancellationResult,
    CarrierConfig,
    Parcel,
    PickupConfirmation,
    RefundStatus,
    ServiceLevel,
    ShipmentRequest,
    ShippingLabel,
    ShippingRate,
    TrackingEvent,
    TrackingLocation,
    TrackingStatus,
    WebhookEvent,
    WebhookEventType,
)
from fulfillment.carrier.port import CarrierAdapter
from fulfillment.carrier.units import (
    DEFAULT_DIM_DIVISOR,
    WeightUnit,
    billable_weight,
    calculate_dimensional_weight,
    convert_weight,
    estimate_delivery_date,
)
from fulfillment.config import get_settings
from fulfillment.exceptions import InvalidAddress, ValidationError

logger = structlog.get_logger(__name__)

MAX_INSURANCE_AMOUNT = 50000.0


@dataclass(frozen=True)
class ServiceOption:
    code: str
    level: ServiceLevel
    multiplier: float
    days: int
    guaranteed: bool = False
    international_multiplier: float | None = None
    international_days: int | None = None

    def pricing(self, international: bool) -> tuple[float, int]:
        if international:
            return (
                self.international_multiplier or self.multiplier,
                self.international_days or self.days,
            )
        return self.multiplier, self.days


# Synthetic route used for tracking histories until a live API is wired in
_TRACKING_ROUTE = (
    (TrackingStatus.PRE_TRANSIT, "Label Created", "Shipping label has been created", None),
    (
        TrackingStatus.IN_TRANSIT,
        "Picked Up",
        "Package picked up by carrier",
        TrackingLocation(city="Los Angeles", state="CA", country="US", postal_code="90001"),
    ),
    (
        TrackingStatus.IN_TRANSIT,
        "In Transit",
        "Package in transit",
        TrackingLocation(city="Phoenix", state="AZ", country="US", postal_code="85001"),
    ),
    (
        TrackingStatus.OUT_FOR_DELIVERY,
        "Out for Delivery",
        "Package out for delivery",
        TrackingLocation(city="Dallas", state="TX", country="US", postal_code="75201"),
    ),
)

_DEFAULT_WEBHOOK_KEYS = {
    "id": "id",
    "tracking_number": "trackingNumber",
    "status": "status",
    "timestamp": "timestamp",
    "status_detail": "statusDetail",
    "details": "details",
    "location": "location",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateCardCarrier(CarrierAdapter):
    """Carrier adapter priced from a static rate card."""

    per_pound: float
    dim_divisor: float = DEFAULT_DIM_DIVISOR
    interstate_factor: float = 1.5
    tracking_prefix: str
    services: tuple[ServiceOption, ...] = ()
    status_codes: dict[str, TrackingStatus] = {}
    webhook_keys: dict[str, str] = {}

    def __init__(self, config: CarrierConfig | None = None, clock: Callable[[], datetime] = _utcnow):
        super().__init__(config)
        self._clock = clock

    # -------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------
    def billable_pounds(self, parcel: Parcel) -> float:
        actual = convert_weight(parcel.weight, parcel.weight_unit, WeightUnit.LB)
        dims = parcel.dimensions
        dimensional = calculate_dimensional_weight(
            dims.length, dims.width, dims.height, dims.unit, divisor=self.dim_divisor
        )
        return billable_weight(actual, dimensional)

    def zone_factor(self, origin: Address, destination: Address) -> float:
        if origin.state.strip().upper() != destination.state.strip().upper():
            return self.interstate_factor
        return 1.0

    @staticmethod
    def is_international(origin: Address, destination: Address) -> bool:
        return origin.country.strip().upper() != destination.country.strip().upper()

    async def quote(self, origin: Address, destination: Address, parcel: Parcel) -> list[ShippingRate]:
        international = self.is_international(origin, destination)
        zone = 1.0 if international else self.zone_factor(origin, destination)
        base = self.billable_pounds(parcel) * self.per_pound * zone
        now = self._clock()
        currency = get_settings().default_currency

        rates = []
        for option in self.services:
            multiplier, days = option.pricing(international)
            rates.append(
                ShippingRate(
                    carrier=self.carrier_type,
                    carrier_name=self.carrier_name,
                    service=option.code,
                    service_level=option.level,
                    rate=round(base * multiplier, 2),
                    currency=currency,
                    estimated_days=days,
                    estimated_delivery=estimate_delivery_date(now, days),
                    delivery_guarantee=option.guaranteed,
                    insurance_available=True,
                    max_insurance_amount=MAX_INSURANCE_AMOUNT,
                )
            )
        return rates

    # -------------------------------------------------------------------
    # Labels
    # -------------------------------------------------------------------
    def generate_tracking_number(self) -> str:
        return f"{self.tracking_prefix}{uuid4().hex[:12].upper()}"

    def owns_tracking_number(self, tracking_number: str) -> bool:
        return tracking_number.startswith(self.tracking_prefix) and len(tracking_number) > len(self.tracking_prefix)

    async def create_label(self, request: ShipmentRequest) -> ShippingLabel:
        settings = self.config.settings if self.config else None
        service = request.service or (settings.default_service if settings else None)
        if not service:
            raise ValidationError({"service": ["Shipping service is required"]})

        rates = await self.quote(request.from_address, request.to_address, request.parcel)
        rate = next((r for r in rates if r.service == service), None)
        if rate is None:
            raise ValidationError({"service": [f"{self.carrier_name} does not offer service {service}"]})

        signature_required = request.signature_required
        if signature_required is None:
            signature_required = settings.signature_required if settings else False
        saturday_delivery = request.saturday_delivery
        if saturday_delivery is None:
            saturday_delivery = settings.saturday_delivery if settings else False

        insurance_amount = None
        if request.insurance:
            insurance_amount = request.insurance.amount
        elif settings and settings.auto_insurance:
            insurance_amount = settings.default_insurance_amount

        tracking_number = self.generate_tracking_number()
        label_format = request.label_format.value
        return ShippingLabel(
            id=f"LBL-{uuid4().hex[:12].upper()}",
            tracking_number=tracking_number,
            carrier=self.carrier_type,
            service=service,
            label_url=f"https://labels.example.com/{self.carrier_type.value}/{tracking_number}.{label_format}",
            label_format=request.label_format,
            rate=rate.rate,
            currency=rate.currency,
            estimated_delivery=rate.estimated_delivery,
            signature_required=signature_required,
            saturday_delivery=saturday_delivery,
            insurance_amount=insurance_amount,
            created_at=self._clock(),
        )

    async def cancel(self, tracking_number: str) -> CancellationResult:
        if not self.owns_tracking_number(tracking_number):
            return CancellationResult(
                cancelled=False,
                refund_status=RefundStatus.DENIED,
                reason=f"{tracking_number} is not a {self.carrier_name} tracking number",
            )
        # Carriers confirm label refunds asynchronously
        return CancellationResult(
            cancelled=True,
            refund_status=RefundStatus.PENDING,
            reason="Label voided",
        )

    async def schedule_pickup(
        self,
        address: Address,
        pickup_date: datetime,
        package_count: int,
        total_weight: float,
    ) -> PickupConfirmation:
        if package_count < 1:
            raise ValidationError({"package_count": ["At least one package is required"]})
        if total_weight <= 0:
            raise ValidationError({"total_weight": ["Total weight must be positive"]})
        result = check_address(address)
        if not result.is_valid:
            raise InvalidAddress(list(result.errors))

        return PickupConfirmation(
            confirmation_number=f"PU-{uuid4().hex[:12].upper()}",
            carrier=self.carrier_type,
            pickup_date=pickup_date,
            package_count=package_count,
            total_weight=total_weight,
        )

    async def validate_address(self, address: Address) -> AddressValidationResult:
        return check_address(address)

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    async def track(self, tracking_number: str) -> list[TrackingEvent]:
        if not self.owns_tracking_number(tracking_number):
            raise ValidationError(
                {"tracking_number": [f"{tracking_number} is not a {self.carrier_name} tracking number"]}
            )

        now = self._clock()
        steps = len(_TRACKING_ROUTE)
        return [
            TrackingEvent(
                timestamp=now - timedelta(days=steps - index),
                status=status,
                status_detail=detail,
                location=location,
                details=details,
                carrier=self.carrier_type,
            )
            for index, (status, detail, details, location) in enumerate(_TRACKING_ROUTE)
        ]

    def map_status(self, carrier_status: str) -> TrackingStatus:
        code = carrier_status.strip()
        if code.upper() in self.status_codes:
            return self.status_codes[code.upper()]
        return TrackingStatus(code.lower())

    def parse_webhook(self, payload: dict[str, Any]) -> WebhookEvent:
        keys = {**_DEFAULT_WEBHOOK_KEYS, **self.webhook_keys}

        tracking_number = payload[keys["tracking_number"]]
        if not isinstance(tracking_number, str) or not tracking_number:
            raise ValueError("Webhook payload has no tracking number")

        status = self.map_status(str(payload[keys["status"]]))
        location = payload.get(keys["location"])
        event = TrackingEvent(
            timestamp=_parse_timestamp(payload[keys["timestamp"]]),
            status=status,
            status_detail=str(payload.get(keys["status_detail"]) or ""),
            location=TrackingLocation(**location) if location else None,
            details=str(payload.get(keys["details"]) or ""),
            carrier=self.carrier_type,
        )
        event_type = (
            WebhookEventType.DELIVERY_CONFIRMED
            if status == TrackingStatus.DELIVERED
            else WebhookEventType.TRACKING_UPDATED
        )
        return WebhookEvent(
            id=str(payload.get(keys["id"]) or f"WH-{uuid4().hex[:12].upper()}"),
            type=event_type,
            tracking_number=tracking_number,
            carrier=self.carrier_type,
            status=status,
            event=event,
            timestamp=self._clock(),
            data=dict(payload),
        )


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, int | float):
        try:
            parsed = datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"Timestamp out of range: {value!r}") from exc
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value)
    else:
        raise TypeError(f"Unsupported timestamp value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
