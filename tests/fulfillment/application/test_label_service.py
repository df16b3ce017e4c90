"""Tests for label generation, tracking and webhook handling."""

from datetime import UTC, datetime

import pytest

from fulfillment.carrier.fake_adapter import FakeCarrier
from fulfillment.carrier.models import (
    CarrierConfig,
    CarrierType,
    RefundStatus,
    ShipmentRequest,
    TrackingStatus,
)
from fulfillment.exceptions import CarrierDisabled, InvalidAddress
from fulfillment.shipping.labels import LabelService

FEDEX_CONFIG = CarrierConfig(id="cfg-fedex", carrier=CarrierType.FEDEX, name="FedEx")


def _request(origin, destination, parcel, carrier=CarrierType.FEDEX, service="FEDEX_GROUND", **kwargs):
    return ShipmentRequest(
        carrier=carrier,
        service=service,
        from_address=origin,
        to_address=destination,
        parcel=parcel,
        **kwargs,
    )


@pytest.fixture
def service(carrier_configs):
    return LabelService(carrier_configs)


class TestGenerateShippingLabel:
    async def test_generates_label(self, service, origin, destination, parcel):
        label = await service.generate_shipping_label(FEDEX_CONFIG, _request(origin, destination, parcel))
        assert label.carrier == CarrierType.FEDEX
        assert label.tracking_number.startswith("7739")
        assert label.rate == 3.0

    async def test_disabled_carrier(self, service, origin, destination, parcel):
        config = FEDEX_CONFIG.model_copy(update={"enabled": False})
        with pytest.raises(CarrierDisabled) as exc:
            await service.generate_shipping_label(config, _request(origin, destination, parcel))
        assert "Carrier FedEx is not enabled" in str(exc.value)

    async def test_config_for_other_carrier(self, service, origin, destination, parcel):
        request = _request(origin, destination, parcel, carrier=CarrierType.UPS, service="UPS_GROUND")
        with pytest.raises(CarrierDisabled) as exc:
            await service.generate_shipping_label(FEDEX_CONFIG, request)
        assert "is for fedex, not ups" in str(exc.value)

    async def test_invalid_destination(self, service, origin, destination, parcel):
        bad = destination.model_copy(update={"street1": "", "postal_code": "ABCDE"})
        with pytest.raises(InvalidAddress) as exc:
            await service.generate_shipping_label(FEDEX_CONFIG, _request(origin, bad, parcel))
        assert exc.value.errors == ["Street address is required", "Invalid US postal code format"]

    async def test_custom_carrier_without_adapter(self, service, origin, destination, parcel):
        config = CarrierConfig(id="cfg-x", carrier=CarrierType.CUSTOM)
        request = _request(origin, destination, parcel, carrier=CarrierType.CUSTOM, service="FAKE_STANDARD")
        with pytest.raises(CarrierDisabled):
            await service.generate_shipping_label(config, request)


class TestBatchGenerateLabels:
    async def test_partial_failure(self, service, origin, destination, parcel):
        good = _request(origin, destination, parcel, reference="ord-1")
        unknown_service = _request(origin, destination, parcel, service="FEDEX_SMOKE_SIGNAL", reference="ord-2")
        bad_address = _request(origin, destination.model_copy(update={"city": ""}), parcel, reference="ord-3")

        result = await service.batch_generate_labels(FEDEX_CONFIG, [good, unknown_service, bad_address])

        assert len(result.success) == 1
        assert [f.request.reference for f in result.failed] == ["ord-2", "ord-3"]
        assert result.failed[0].error == "FedEx does not offer service FEDEX_SMOKE_SIGNAL"
        assert result.failed[1].error == "City is required"
        assert not any(f.retryable for f in result.failed)

    async def test_adapter_crash_is_retryable(self, origin, destination, parcel):
        FakeCarrier.configure(should_succeed=False, failure_reason="gateway timeout")
        service = LabelService(registry={CarrierType.CUSTOM: FakeCarrier})
        config = CarrierConfig(id="cfg-fake", carrier=CarrierType.CUSTOM)
        request = _request(origin, destination, parcel, carrier=CarrierType.CUSTOM, service="FAKE_STANDARD")

        result = await service.batch_generate_labels(config, [request])

        assert result.success == []
        assert result.failed[0].error == "gateway timeout"
        assert result.failed[0].retryable is True

    async def test_empty_batch(self, service):
        result = await service.batch_generate_labels(FEDEX_CONFIG, [])
        assert result.success == []
        assert result.failed == []


class TestCarrierOperations:
    async def test_track_package_sorted(self, service):
        events = await service.track_package("ups", "1ZABCDEF1234")
        assert events == sorted(events, key=lambda e: e.timestamp)
        assert events[-1].status == TrackingStatus.OUT_FOR_DELIVERY

    async def test_cancel_shipment(self, service):
        result = await service.cancel_shipment(CarrierType.DHL, "DHL1234567890")
        assert result.cancelled is True
        assert result.refund_status == RefundStatus.PENDING

    async def test_schedule_pickup(self, service, origin):
        confirmation = await service.schedule_pickup(
            CarrierType.FEDEX,
            origin,
            datetime(2024, 3, 7, tzinfo=UTC),
            package_count=2,
            total_weight=6.5,
        )
        assert confirmation.carrier == CarrierType.FEDEX
        assert confirmation.total_weight == 6.5

    async def test_validate_address_without_carrier(self, service, destination):
        result = await service.validate_address(destination.model_copy(update={"country": ""}))
        assert result.is_valid is False
        assert result.errors == ("Country is required",)

    async def test_validate_address_with_carrier(self, service, destination):
        assert (await service.validate_address(destination, CarrierType.USPS)).is_valid is True

    async def test_unknown_carrier_adapter(self, service):
        with pytest.raises(CarrierDisabled):
            await service.track_package(CarrierType.CUSTOM, "X123")

    def test_carrier_settings_are_used(self, carrier_configs):
        service = LabelService(carrier_configs)
        assert service.adapter_for("usps").config.id == "cfg-usps"
        assert LabelService().adapter_for("usps").config.id == "default-usps"


class TestHandleWebhookEvent:
    def test_parses_payload(self, service):
        event = service.handle_webhook_event(
            {
                "shipmentTrackingNumber": "DHL123",
                "statusCode": "delivered",
                "timestamp": "2024-03-05T10:00:00+00:00",
                "description": "Delivered to front desk",
            },
            CarrierType.DHL,
        )
        assert event.tracking_number == "DHL123"
        assert event.status == TrackingStatus.DELIVERED
        assert event.event.status_detail == "Delivered to front desk"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"eventCode": "01", "eventDateTime": "2024-03-05T10:00:00"},
            {"trackingNumber": "9400X", "eventCode": "ZZ", "eventDateTime": "2024-03-05T10:00:00"},
            {"trackingNumber": "9400X", "eventCode": "01", "eventDateTime": ["not", "a", "date"]},
            {"trackingNumber": "", "eventCode": "01", "eventDateTime": "2024-03-05T10:00:00"},
        ],
    )
    def test_malformed_payload_returns_none(self, service, payload):
        assert service.handle_webhook_event(payload, CarrierType.USPS) is None

    @pytest.mark.parametrize("carrier", [CarrierType.CUSTOM, "pigeon"])
    def test_carrier_without_adapter_returns_none(self, service, carrier):
        payload = {"trackingNumber": "X1", "status": "in_transit", "timestamp": "2024-03-05T10:00:00+00:00"}
        assert service.handle_webhook_event(payload, carrier) is None

    def test_out_of_range_timestamp_returns_none(self, service):
        payload = {"trackingNumber": "7739ABC", "eventType": "IT", "eventTimestamp": 10**20}
        assert service.handle_webhook_event(payload, CarrierType.FEDEX) is None
