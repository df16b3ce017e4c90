"""Carrier-agnostic data shapes shared by every adapter.

These are the values that cross the carrier adapter contract: addresses and
parcels going in; rates, labels, tracking events and webhook events coming
out. None of them are persisted by the engine.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fulfillment.carrier.units import LengthUnit, WeightUnit


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CarrierType(str, Enum):
    FEDEX = "fedex"
    UPS = "ups"
    DHL = "dhl"
    USPS = "usps"
    CUSTOM = "custom"


class ServiceLevel(str, Enum):
    GROUND = "ground"
    EXPRESS = "express"
    OVERNIGHT = "overnight"
    INTERNATIONAL = "international"
    ECONOMY = "economy"


class LabelFormat(str, Enum):
    PDF = "pdf"
    PNG = "png"
    ZPL = "zpl"


class TrackingStatus(str, Enum):
    PRE_TRANSIT = "pre_transit"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"
    EXCEPTION = "exception"
    CANCELLED = "cancelled"


class WebhookEventType(str, Enum):
    TRACKING_UPDATED = "tracking.updated"
    SHIPMENT_CREATED = "shipment.created"
    SHIPMENT_FAILED = "shipment.failed"
    DELIVERY_CONFIRMED = "delivery.confirmed"


class RefundStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    DENIED = "denied"


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
class Address(_Value):
    name: str = ""
    company: str | None = None
    street1: str = ""
    street2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str | None = None
    email: str | None = None


class ParcelDimensions(_Value):
    length: float = Field(ge=0)
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    unit: LengthUnit = LengthUnit.IN


class Parcel(_Value):
    weight: float = Field(gt=0)
    weight_unit: WeightUnit = WeightUnit.LB
    dimensions: ParcelDimensions


class Insurance(_Value):
    amount: float = Field(ge=0)
    currency: str = "USD"
    provider: str | None = None


class ShipmentRequest(_Value):
    carrier: CarrierType
    service: str = ""
    from_address: Address
    to_address: Address
    parcel: Parcel
    insurance: Insurance | None = None
    reference: str | None = None
    label_format: LabelFormat = LabelFormat.PDF
    signature_required: bool | None = None
    saturday_delivery: bool | None = None


# ---------------------------------------------------------------------------
# Carrier configuration (supplied by the caller, per tenant)
# ---------------------------------------------------------------------------
class CarrierCredentials(_Value):
    api_key: str | None = None
    account_number: str | None = None
    meter_number: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    user_id: str | None = None
    password: str | None = None


class CarrierSettings(_Value):
    default_service: str | None = None
    test_mode: bool = True
    auto_insurance: bool = False
    default_insurance_amount: float | None = None
    signature_required: bool = False
    saturday_delivery: bool = False


class CarrierConfig(_Value):
    id: str
    carrier: CarrierType
    name: str = ""
    enabled: bool = True
    credentials: CarrierCredentials = Field(default_factory=CarrierCredentials)
    settings: CarrierSettings = Field(default_factory=CarrierSettings)
    negotiated_rates: bool = False


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------
class ShippingRate(_Value):
    carrier: CarrierType
    carrier_name: str
    service: str
    service_level: ServiceLevel
    rate: float
    currency: str = "USD"
    estimated_days: int
    estimated_delivery: datetime | None = None
    delivery_guarantee: bool = False
    insurance_available: bool = True
    max_insurance_amount: float | None = None


class ShippingLabel(_Value):
    id: str
    tracking_number: str
    carrier: CarrierType
    service: str
    label_url: str
    label_format: LabelFormat = LabelFormat.PDF
    rate: float
    currency: str = "USD"
    estimated_delivery: datetime | None = None
    signature_required: bool = False
    saturday_delivery: bool = False
    insurance_amount: float | None = None
    created_at: datetime


class TrackingLocation(_Value):
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None


class TrackingEvent(_Value):
    timestamp: datetime
    status: TrackingStatus
    status_detail: str = ""
    location: TrackingLocation | None = None
    details: str = ""
    carrier: CarrierType


class WebhookEvent(_Value):
    id: str
    type: WebhookEventType = WebhookEventType.TRACKING_UPDATED
    tracking_number: str
    carrier: CarrierType
    status: TrackingStatus
    event: TrackingEvent
    timestamp: datetime
    data: dict[str, Any] = Field(default_factory=dict)


class CancellationResult(_Value):
    cancelled: bool
    refund_amount: float | None = None
    refund_status: RefundStatus
    reason: str = ""


class PickupConfirmation(_Value):
    confirmation_number: str
    carrier: CarrierType
    pickup_date: datetime
    ready_time: str = "09:00"
    close_time: str = "17:00"
    package_count: int
    total_weight: float


class AddressValidationResult(_Value):
    is_valid: bool
    errors: tuple[str, ...] = ()
    suggestions: tuple[Address, ...] | None = None
