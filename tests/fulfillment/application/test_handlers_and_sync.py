"""Tests for repository-backed command handlers and tracking sync."""

import pytest

from fulfillment.carrier.models import CarrierConfig, CarrierType, ShipmentRequest
from fulfillment.exceptions import FulfillmentError, IncompletePicking, InvalidTransition, OrderNotFound
from fulfillment.fulfillment.creation import create_fulfillment_order
from fulfillment.fulfillment.fulfillment import (
    BoxContent,
    Dimensions,
    FulfillmentStatus,
    PackingBox,
)
from fulfillment.fulfillment.handlers import FulfillmentHandler
from fulfillment.repository import InMemoryFulfillmentRepository
from fulfillment.shipping.labels import LabelService
from fulfillment.shipping.sync import sync_active_shipments

FEDEX_CONFIG = CarrierConfig(id="cfg-fedex", carrier=CarrierType.FEDEX, name="FedEx")
BOX_DIMENSIONS = Dimensions(length=10, width=8, height=6)


@pytest.fixture
def repository():
    return InMemoryFulfillmentRepository()


@pytest.fixture
def handler(repository):
    return FulfillmentHandler(repository)


def _advance_to_packed(handler, fulfillment_id):
    handler.mark_payment_received(fulfillment_id)
    handler.mark_ready(fulfillment_id)
    handler.start_picking(fulfillment_id, "picker-1")
    handler.pick_item(fulfillment_id, "oi-1", 2)
    handler.pick_item(fulfillment_id, "oi-2", 1)
    handler.complete_picking(fulfillment_id)
    handler.start_packing(fulfillment_id, "packer-1")
    handler.add_packing_box(
        fulfillment_id,
        PackingBox(
            weight=3.0,
            dimensions=BOX_DIMENSIONS,
            items=(BoxContent(item_id="oi-1", quantity=2), BoxContent(item_id="oi-2", quantity=1)),
        ),
    )
    return handler.complete_packing(fulfillment_id, 3.0, BOX_DIMENSIONS)


async def _ship_with_label(handler, fulfillment_id, origin, destination, parcel):
    label = await LabelService().generate_shipping_label(
        FEDEX_CONFIG,
        ShipmentRequest(
            carrier=CarrierType.FEDEX,
            service="FEDEX_GROUND",
            from_address=origin,
            to_address=destination,
            parcel=parcel,
            reference=fulfillment_id,
        ),
    )
    handler.apply_label(fulfillment_id, label)
    return handler.ship(fulfillment_id, {})


class TestInMemoryRepository:
    def test_get_missing(self, repository):
        with pytest.raises(OrderNotFound) as exc:
            repository.get("FO-NOPE")
        assert "Fulfillment order not found: FO-NOPE" in str(exc.value)

    def test_add_replaces_by_id(self, repository, sales_order):
        order = create_fulfillment_order(sales_order)
        repository.add(order)
        repository.add(order.model_copy(update={"notes": "fragile"}))
        assert len(repository) == 1
        assert repository.get(order.id).notes == "fragile"

    def test_list_by_status(self, sales_order):
        new = create_fulfillment_order(sales_order)
        shipped = create_fulfillment_order(sales_order).model_copy(update={"status": FulfillmentStatus.SHIPPED})
        repository = InMemoryFulfillmentRepository([new, shipped])

        assert repository.list_by_status(FulfillmentStatus.SHIPPED) == [shipped]
        assert len(repository.list_by_status()) == 2
        assert repository.list_by_status(FulfillmentStatus.DELIVERED) == []


class TestFulfillmentHandler:
    def test_create_stores_order(self, handler, repository, sales_order):
        fulfillment_id = handler.create_fulfillment(sales_order, priority="high", warehouse="WH-1")
        stored = repository.get(fulfillment_id)
        assert stored.order_id == "ord-001"
        assert stored.warehouse == "WH-1"
        assert stored.status == FulfillmentStatus.NEW

    def test_warehouse_flow(self, handler, repository, sales_order):
        fulfillment_id = handler.create_fulfillment(sales_order)
        packed = _advance_to_packed(handler, fulfillment_id)

        assert packed.status == FulfillmentStatus.PACKED
        assert repository.get(fulfillment_id) == packed
        assert packed.picking.picked_by == "picker-1"
        assert packed.packing.packed_by == "packer-1"
        assert [i.packed for i in packed.items] == [2, 1]

    def test_rejected_command_leaves_stored_order(self, handler, repository, sales_order):
        fulfillment_id = handler.create_fulfillment(sales_order)
        handler.mark_payment_received(fulfillment_id)
        handler.mark_ready(fulfillment_id)
        handler.start_picking(fulfillment_id, "picker-1")
        before = repository.get(fulfillment_id)

        with pytest.raises(IncompletePicking):
            handler.complete_picking(fulfillment_id)
        assert repository.get(fulfillment_id) == before

    def test_unknown_id(self, handler):
        with pytest.raises(OrderNotFound):
            handler.mark_ready("FO-MISSING")

    def test_cancel(self, handler, sales_order):
        fulfillment_id = handler.create_fulfillment(sales_order)
        cancelled = handler.cancel(fulfillment_id, "Customer changed mind")
        assert cancelled.status == FulfillmentStatus.CANCELLED
        assert cancelled.cancellation_reason == "Customer changed mind"
        with pytest.raises(InvalidTransition):
            handler.mark_payment_received(fulfillment_id)

    async def test_label_then_ship(self, handler, sales_order, origin, destination, parcel):
        fulfillment_id = handler.create_fulfillment(sales_order)
        _advance_to_packed(handler, fulfillment_id)

        shipped = await _ship_with_label(handler, fulfillment_id, origin, destination, parcel)

        assert shipped.status == FulfillmentStatus.SHIPPED
        assert shipped.shipping.carrier == CarrierType.FEDEX
        assert shipped.shipping.tracking_number.startswith("7739")
        assert shipped.shipping.rate == 3.0
        assert shipped.shipping.shipped_at is not None

    async def test_update_tracking(self, handler, sales_order, origin, destination, parcel):
        fulfillment_id = handler.create_fulfillment(sales_order)
        _advance_to_packed(handler, fulfillment_id)
        await _ship_with_label(handler, fulfillment_id, origin, destination, parcel)

        handler.update_tracking(fulfillment_id, "in_transit")
        delivered = handler.update_tracking(fulfillment_id, "delivered")
        assert delivered.status == FulfillmentStatus.DELIVERED
        assert delivered.shipping.actual_delivery is not None

    async def test_update_tracking_unknown_status(self, handler, repository, sales_order, origin, destination, parcel):
        fulfillment_id = handler.create_fulfillment(sales_order)
        _advance_to_packed(handler, fulfillment_id)
        shipped = await _ship_with_label(handler, fulfillment_id, origin, destination, parcel)

        with pytest.raises(FulfillmentError):
            handler.update_tracking(fulfillment_id, "lost_at_sea")
        assert repository.get(fulfillment_id) == shipped


class TestSyncActiveShipments:
    async def test_advances_shipped_orders(self, handler, repository, sales_order, origin, destination, parcel):
        fulfillment_id = handler.create_fulfillment(sales_order)
        _advance_to_packed(handler, fulfillment_id)
        await _ship_with_label(handler, fulfillment_id, origin, destination, parcel)
        untouched_id = handler.create_fulfillment(sales_order)

        result = await sync_active_shipments(repository, LabelService())

        assert [o.id for o in result.synced] == [fulfillment_id]
        assert result.failed == []
        assert repository.get(fulfillment_id).status == FulfillmentStatus.OUT_FOR_DELIVERY
        assert repository.get(untouched_id).status == FulfillmentStatus.NEW

    async def test_order_without_tracking_number(self, repository, sales_order):
        shipped = create_fulfillment_order(sales_order).model_copy(update={"status": FulfillmentStatus.SHIPPED})
        repository.add(shipped)

        result = await sync_active_shipments(repository, LabelService())

        assert result.synced == []
        assert result.failed[0].fulfillment_id == shipped.id
        assert result.failed[0].error == "Order has no carrier tracking number"

    async def test_tracking_failure_is_isolated(self, repository, sales_order):
        order = create_fulfillment_order(sales_order)
        good = order.model_copy(
            update={
                "status": FulfillmentStatus.IN_TRANSIT,
                "shipping": order.shipping.model_copy(update={"carrier": CarrierType.UPS, "tracking_number": "1ZGOOD"}),
            }
        )
        bad = create_fulfillment_order(sales_order).model_copy(
            update={
                "status": FulfillmentStatus.SHIPPED,
                "shipping": order.shipping.model_copy(update={"carrier": CarrierType.UPS, "tracking_number": "7739X"}),
            }
        )
        repository.add(good)
        repository.add(bad)

        result = await sync_active_shipments(repository, LabelService(), max_concurrency=1)

        assert [o.id for o in result.synced] == [good.id]
        assert result.failed[0].fulfillment_id == bad.id
        assert "is not a UPS tracking number" in result.failed[0].error
        assert repository.get(good.id).status == FulfillmentStatus.OUT_FOR_DELIVERY
        assert repository.get(bad.id).status == FulfillmentStatus.SHIPPED
