"""Carrier port — abstract interface for shipping carrier integrations.

All carrier adapters must implement this interface. The engine programs
against the port; adapters are looked up by carrier type in the registry
(``fulfillment.carrier``). Every method has the same input and output shapes
for every carrier.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from fulfillment.carrier.models import (
    Address,
    AddressValidationResult,
    CancellationResult,
    CarrierConfig,
    CarrierType,
    Parcel,
    PickupConfirmation,
    ShipmentRequest,
    ShippingLabel,
    ShippingRate,
    TrackingEvent,
    TrackingStatus,
    WebhookEvent,
)


class CarrierAdapter(ABC):
    """Abstract interface for carrier adapters."""

    carrier_type: CarrierType
    carrier_name: str

    def __init__(self, config: CarrierConfig | None = None):
        self.config = config

    @abstractmethod
    async def quote(self, origin: Address, destination: Address, parcel: Parcel) -> list[ShippingRate]:
        """Quote every service level the carrier offers for this parcel."""
        ...

    @abstractmethod
    async def create_label(self, request: ShipmentRequest) -> ShippingLabel:
        """Create a shipment and return its label descriptor."""
        ...

    @abstractmethod
    async def track(self, tracking_number: str) -> list[TrackingEvent]:
        """Return the tracking history for a shipment, oldest first."""
        ...

    @abstractmethod
    async def cancel(self, tracking_number: str) -> CancellationResult:
        """Void a label and report the refund outcome."""
        ...

    @abstractmethod
    async def schedule_pickup(
        self,
        address: Address,
        pickup_date: datetime,
        package_count: int,
        total_weight: float,
    ) -> PickupConfirmation:
        """Book a carrier pickup at ``address``."""
        ...

    @abstractmethod
    async def validate_address(self, address: Address) -> AddressValidationResult:
        """Check required fields and postal format for ``address``."""
        ...

    @abstractmethod
    def map_status(self, carrier_status: str) -> TrackingStatus:
        """Map a carrier-specific status code to the normalized tracking status.

        Raises:
            ValueError: if the code is unknown.
        """
        ...

    @abstractmethod
    def parse_webhook(self, payload: dict[str, Any]) -> WebhookEvent:
        """Normalize an inbound carrier callback.

        Raises:
            ValueError, KeyError or TypeError when the payload is malformed.
        """
        ...
