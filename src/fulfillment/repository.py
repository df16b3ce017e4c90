"""Persistence port for fulfillment orders.

The engine never owns storage; callers supply a ``FulfillmentRepository``.
``InMemoryFulfillmentRepository`` backs tests and single-process use.
"""

import threading
from abc import ABC, abstractmethod

from fulfillment.exceptions import OrderNotFound
from fulfillment.fulfillment.fulfillment import FulfillmentOrder, FulfillmentStatus


class FulfillmentRepository(ABC):
    @abstractmethod
    def get(self, fulfillment_id: str) -> FulfillmentOrder:
        """Return the stored order or raise ``OrderNotFound``."""

    @abstractmethod
    def add(self, order: FulfillmentOrder) -> None:
        """Insert or replace ``order`` by id."""

    @abstractmethod
    def list_by_status(self, *statuses: FulfillmentStatus) -> list[FulfillmentOrder]: ...


class InMemoryFulfillmentRepository(FulfillmentRepository):
    def __init__(self, orders: list[FulfillmentOrder] | None = None):
        self._orders: dict[str, FulfillmentOrder] = {}
        self._lock = threading.Lock()
        for order in orders or []:
            self.add(order)

    def get(self, fulfillment_id: str) -> FulfillmentOrder:
        with self._lock:
            order = self._orders.get(fulfillment_id)
        if order is None:
            raise OrderNotFound(fulfillment_id)
        return order

    def add(self, order: FulfillmentOrder) -> None:
        with self._lock:
            self._orders[order.id] = order

    def list_by_status(self, *statuses: FulfillmentStatus) -> list[FulfillmentOrder]:
        with self._lock:
            orders = list(self._orders.values())
        if not statuses:
            return orders
        return [o for o in orders if o.status in statuses]

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)
