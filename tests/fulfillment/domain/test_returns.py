"""Tests for return requests and their transition table."""

import pytest

from fulfillment.exceptions import InvalidReturnTransition, ValidationError
from fulfillment.fulfillment.creation import create_fulfillment_order
from fulfillment.fulfillment.fulfillment import FulfillmentStatus, ReturnItem, ReturnStatus
from fulfillment.fulfillment.returns import (
    attach_return,
    create_return_request,
    process_return_request,
    replace_return,
)


def _delivered(sales_order):
    order = create_fulfillment_order(sales_order)
    return order.model_copy(update={"status": FulfillmentStatus.DELIVERED})


def _request(order):
    return create_return_request(
        order,
        [ReturnItem(item_id="oi-1", quantity=1, reason="Damaged")],
        reason="Arrived damaged",
        requested_by="cust-001",
    )


class TestCreateReturnRequest:
    def test_request_fields(self, sales_order):
        order = _delivered(sales_order)
        request = _request(order)
        assert request.id.startswith("RET-")
        assert request.fulfillment_order_id == order.id
        assert request.order_id == "ord-001"
        assert request.status == ReturnStatus.REQUESTED
        assert request.items[0].reason == "Damaged"

    def test_order_untouched(self, sales_order):
        order = _delivered(sales_order)
        _request(order)
        assert order.returns == ()
        assert order.status == FulfillmentStatus.DELIVERED


class TestProcessReturnRequest:
    def test_approve_stamps_approver(self, sales_order):
        request = process_return_request(_request(_delivered(sales_order)), "approved", approved_by="agent-7")
        assert request.status == ReturnStatus.APPROVED
        assert request.approved_by == "agent-7"

    def test_full_lifecycle(self, sales_order):
        request = _request(_delivered(sales_order))
        request = process_return_request(request, ReturnStatus.APPROVED, approved_by="agent-7")
        request = process_return_request(request, ReturnStatus.RECEIVED)
        assert request.received_at is not None

        request = process_return_request(
            request,
            ReturnStatus.PROCESSED,
            refund_amount=19.99,
            restock_items=True,
            notes="Refund issued",
        )
        assert request.status == ReturnStatus.PROCESSED
        assert request.processed_at is not None
        assert request.refund_amount == 19.99
        assert request.restock_items is True
        assert request.notes == "Refund issued"

    def test_reject(self, sales_order):
        request = process_return_request(_request(_delivered(sales_order)), ReturnStatus.REJECTED)
        assert request.status == ReturnStatus.REJECTED

    @pytest.mark.parametrize("target", [ReturnStatus.RECEIVED, ReturnStatus.PROCESSED])
    def test_cannot_skip_approval(self, sales_order, target):
        with pytest.raises(InvalidReturnTransition) as exc:
            process_return_request(_request(_delivered(sales_order)), target)
        assert "Cannot move return from requested" in str(exc.value)

    def test_rejected_is_terminal(self, sales_order):
        request = process_return_request(_request(_delivered(sales_order)), ReturnStatus.REJECTED)
        with pytest.raises(InvalidReturnTransition):
            process_return_request(request, ReturnStatus.APPROVED)


class TestAttachReturn:
    def test_attach_and_replace(self, sales_order):
        order = _delivered(sales_order)
        request = _request(order)
        order = attach_return(order, request)
        assert order.returns == (request,)
        assert order.status == FulfillmentStatus.DELIVERED

        approved = process_return_request(request, ReturnStatus.APPROVED, approved_by="agent-7")
        order = replace_return(order, approved)
        assert order.returns[0].status == ReturnStatus.APPROVED

    def test_attach_twice_rejected(self, sales_order):
        order = _delivered(sales_order)
        request = _request(order)
        order = attach_return(order, request)
        with pytest.raises(ValidationError):
            attach_return(order, request)

    def test_attach_to_other_order_rejected(self, sales_order):
        request = _request(_delivered(sales_order))
        with pytest.raises(ValidationError):
            attach_return(_delivered(sales_order), request)

    def test_replace_unknown_rejected(self, sales_order):
        order = _delivered(sales_order)
        with pytest.raises(ValidationError):
            replace_return(order, _request(order))
