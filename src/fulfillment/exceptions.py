"""Fulfillment error taxonomy.

Every error carries a ``messages`` mapping of field name to a list of
human-readable messages, mirroring the validation errors raised by domain
aggregates. ``retryable`` separates "the caller's data was invalid" from
"a provider was unavailable"; only the latter is worth retrying.
"""

from typing import Any


class FulfillmentError(Exception):
    """Base class for all fulfillment engine errors."""

    retryable = False

    def __init__(self, messages: dict[str, list[str]] | str):
        if isinstance(messages, str):
            messages = {"_entity": [messages]}
        self.messages = messages
        super().__init__(messages)

    def first_message(self) -> str:
        for values in self.messages.values():
            if values:
                return values[0]
        return self.__class__.__name__


class ValidationError(FulfillmentError):
    """Caller-supplied data or state violates a business rule."""


class InvalidTransition(ValidationError):
    """Requested status change is not an edge of the fulfillment state graph."""

    def __init__(self, current: Any, target: Any):
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {_value(current)} to {_value(target)}"]})


class IncompletePicking(ValidationError):
    """Picking cannot complete while any item is short."""


class IncompletePacking(ValidationError):
    """Packing cannot complete while any item is not fully packed."""


class ItemNotFound(ValidationError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__({"item_id": [f"Item not found: {item_id}"]})


class OverPacking(ValidationError):
    """A box would pack more units of an item than were picked."""


class InvalidReturnTransition(ValidationError):
    def __init__(self, current: Any, target: Any):
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot move return from {_value(current)} to {_value(target)}"]})


class CarrierDisabled(ValidationError):
    """The carrier configuration is disabled or does not match the request."""


class InvalidAddress(ValidationError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__({"address": list(errors)})


class OrderNotFound(ValidationError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__({"id": [f"Fulfillment order not found: {order_id}"]})


class EmptyRateSet(FulfillmentError):
    """No carrier produced a quote to compare."""

    def __init__(self, message: str = "No rates to compare"):
        super().__init__({"rates": [message]})


class AdapterFailure(FulfillmentError):
    """A single carrier adapter errored or timed out."""

    retryable = True

    def __init__(self, carrier: str, reason: str, timed_out: bool = False):
        self.carrier = carrier
        self.reason = reason
        self.timed_out = timed_out
        super().__init__({"carrier": [f"{carrier}: {reason}"]})


class CarriersUnavailable(FulfillmentError):
    """Every attempted carrier adapter failed."""

    retryable = True

    def __init__(self, failures: list[AdapterFailure]):
        self.failures = failures
        super().__init__({"carriers": [f.first_message() for f in failures]})


def _value(status: Any) -> str:
    return getattr(status, "value", str(status))
