"""Tests for carrier handoff and tracking-driven status changes."""

from datetime import UTC, datetime, timedelta

import pytest

from fulfillment.carrier.models import CarrierType, LabelFormat, ShippingLabel, TrackingEvent, TrackingStatus
from fulfillment.exceptions import InvalidTransition, ValidationError
from fulfillment.fulfillment.creation import create_fulfillment_order
from fulfillment.fulfillment.fulfillment import FulfillmentStatus, ShippingInfo
from fulfillment.fulfillment.shipping import apply_label, ship_order
from fulfillment.fulfillment.tracking import apply_tracking_events, update_tracking_status


def _packed(sales_order):
    order = create_fulfillment_order(sales_order)
    items = tuple(i.model_copy(update={"picked": i.quantity, "packed": i.quantity}) for i in order.items)
    return order.model_copy(update={"status": FulfillmentStatus.PACKED, "items": items})


def _shipped(sales_order):
    return ship_order(_packed(sales_order), {"carrier": "ups", "tracking_number": "1ZABC123"})


def _event(status, hours_ago):
    return TrackingEvent(
        timestamp=datetime.now(UTC) - timedelta(hours=hours_ago),
        status=status,
        carrier=CarrierType.UPS,
    )


class TestShipOrder:
    def test_ship_merges_partial_mapping(self, sales_order):
        order = _shipped(sales_order)
        assert order.status == FulfillmentStatus.SHIPPED
        assert order.shipping.carrier == CarrierType.UPS
        assert order.shipping.tracking_number == "1ZABC123"
        assert order.shipping.currency == "USD"
        assert order.shipping.shipped_at is not None

    def test_ship_with_shipping_info_keeps_existing_fields(self, sales_order):
        order = _packed(sales_order)
        order = order.model_copy(update={"shipping": ShippingInfo(service="UPS_GROUND", rate=7.5)})
        order = ship_order(order, ShippingInfo(carrier=CarrierType.UPS, tracking_number="1ZXYZ"))
        assert order.shipping.service == "UPS_GROUND"
        assert order.shipping.rate == 7.5
        assert order.shipping.tracking_number == "1ZXYZ"

    def test_apply_label_does_not_change_status(self, sales_order):
        order = _packed(sales_order)
        label = ShippingLabel(
            id="LBL-1",
            tracking_number="7739ABCDEF",
            carrier=CarrierType.FEDEX,
            service="FEDEX_GROUND",
            label_url="https://labels.example.com/fedex/7739ABCDEF.pdf",
            label_format=LabelFormat.PDF,
            rate=12.5,
            created_at=datetime.now(UTC),
        )
        labelled = apply_label(order, label)
        assert labelled.status == FulfillmentStatus.PACKED
        assert labelled.shipping.carrier == CarrierType.FEDEX
        assert labelled.shipping.tracking_number == "7739ABCDEF"
        assert labelled.shipping.label_url.endswith(".pdf")
        assert labelled.shipping.rate == 12.5


class TestUpdateTrackingStatus:
    def test_in_transit(self, sales_order):
        order = update_tracking_status(_shipped(sales_order), "in_transit")
        assert order.status == FulfillmentStatus.IN_TRANSIT
        assert order.shipping.actual_delivery is None

    def test_delivered_stamps_actual_delivery(self, sales_order):
        order = update_tracking_status(_shipped(sales_order), FulfillmentStatus.IN_TRANSIT)
        order = update_tracking_status(order, FulfillmentStatus.DELIVERED)
        assert order.shipping.actual_delivery is not None

    def test_non_tracking_status_rejected(self, sales_order):
        with pytest.raises(ValidationError):
            update_tracking_status(_shipped(sales_order), FulfillmentStatus.RETURNED)

    def test_unknown_status_string_rejected(self, sales_order):
        with pytest.raises(ValidationError) as exc:
            update_tracking_status(_shipped(sales_order), "teleported")
        assert exc.value.messages == {"status": ["Unknown fulfillment status: teleported"]}

    def test_illegal_step_rejected(self, sales_order):
        with pytest.raises(InvalidTransition):
            update_tracking_status(_shipped(sales_order), FulfillmentStatus.OUT_FOR_DELIVERY)


class TestApplyTrackingEvents:
    def test_replays_history_in_order(self, sales_order):
        events = [
            _event(TrackingStatus.OUT_FOR_DELIVERY, 1),
            _event(TrackingStatus.PRE_TRANSIT, 48),
            _event(TrackingStatus.IN_TRANSIT, 24),
        ]
        order = apply_tracking_events(_shipped(sales_order), events)
        assert order.status == FulfillmentStatus.OUT_FOR_DELIVERY

    def test_delivered_history(self, sales_order):
        events = [_event(TrackingStatus.IN_TRANSIT, 24), _event(TrackingStatus.DELIVERED, 1)]
        order = apply_tracking_events(_shipped(sales_order), events)
        assert order.status == FulfillmentStatus.DELIVERED
        assert order.shipping.actual_delivery is not None

    def test_no_actionable_events_returns_same_order(self, sales_order):
        order = _shipped(sales_order)
        assert apply_tracking_events(order, [_event(TrackingStatus.PRE_TRANSIT, 2)]) is order

    def test_backwards_event_skipped(self, sales_order):
        order = update_tracking_status(_shipped(sales_order), FulfillmentStatus.IN_TRANSIT)
        order = update_tracking_status(order, FulfillmentStatus.OUT_FOR_DELIVERY)
        updated = apply_tracking_events(order, [_event(TrackingStatus.IN_TRANSIT, 1)])
        assert updated.status == FulfillmentStatus.OUT_FOR_DELIVERY
