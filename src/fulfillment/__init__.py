"""Fulfillment workflow engine.

Drives a sales order from payment through picking, packing, multi-carrier
rate shopping, label generation, shipment tracking and returns. Orders are
immutable values; callers persist them through a ``FulfillmentRepository``.
"""
