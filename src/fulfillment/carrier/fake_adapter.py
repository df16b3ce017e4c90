"""Fake carrier adapter — deterministic carrier for testing and development.

Prices like a rate-card carrier and issues ``FAKE`` tracking numbers.
Configurable failure and latency behavior for exercising partial-failure
and timeout paths in rate shopping.
"""

import asyncio

from fulfillment.carrier.models import (
    Address,
    CarrierType,
    Parcel,
    ServiceLevel,
    ShipmentRequest,
    ShippingLabel,
    ShippingRate,
)
from fulfillment.carrier.rate_card import RateCardCarrier, ServiceOption


class FakeCarrierError(RuntimeError):
    pass


class FakeCarrier(RateCardCarrier):
    """Fake carrier that always succeeds by default."""

    carrier_type = CarrierType.CUSTOM
    carrier_name = "FakeCarrier"
    per_pound = 0.30
    tracking_prefix = "FAKE"
    services = (
        ServiceOption("FAKE_STANDARD", ServiceLevel.GROUND, 1.0, 5),
        ServiceOption("FAKE_EXPRESS", ServiceLevel.EXPRESS, 2.0, 2),
        ServiceOption("FAKE_OVERNIGHT", ServiceLevel.OVERNIGHT, 3.0, 1, guaranteed=True),
    )

    should_succeed = True
    failure_reason = "Carrier unavailable"
    delay_seconds = 0.0
    quote_calls = 0

    @classmethod
    def configure(
        cls,
        should_succeed: bool = True,
        failure_reason: str = "Carrier unavailable",
        delay_seconds: float = 0.0,
    ) -> None:
        """Configure the fake carrier behavior for testing.

        Behavior is class-level because the registry instantiates a new
        adapter for every request.
        """
        cls.should_succeed = should_succeed
        cls.failure_reason = failure_reason
        cls.delay_seconds = delay_seconds

    @classmethod
    def reset(cls) -> None:
        cls.configure()
        cls.quote_calls = 0

    async def quote(self, origin: Address, destination: Address, parcel: Parcel) -> list[ShippingRate]:
        type(self).quote_calls += 1
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if not self.should_succeed:
            raise FakeCarrierError(self.failure_reason)
        return await super().quote(origin, destination, parcel)

    async def create_label(self, request: ShipmentRequest) -> ShippingLabel:
        if not self.should_succeed:
            raise FakeCarrierError(self.failure_reason)
        return await super().create_label(request)
