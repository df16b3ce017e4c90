"""Carrier adapter registry — pluggable shipping carrier integration.

Adapters register themselves by carrier type with ``@register_carrier``.
Callers resolve an adapter for a tenant's ``CarrierConfig`` with
``get_adapter``; carrier types without a registered adapter resolve to
``None``.
"""

from collections.abc import Callable

import structlog

from fulfillment.carrier.models import CarrierConfig, CarrierType
from fulfillment.carrier.port import CarrierAdapter

logger = structlog.get_logger(__name__)

CarrierRegistry = dict[CarrierType, type[CarrierAdapter]]

_CARRIER_REGISTRY: CarrierRegistry = {}


def register_carrier(carrier_type: CarrierType) -> Callable[[type[CarrierAdapter]], type[CarrierAdapter]]:
    """Decorator registering an adapter class for ``carrier_type``."""

    def decorator(cls: type[CarrierAdapter]) -> type[CarrierAdapter]:
        _CARRIER_REGISTRY[carrier_type] = cls
        logger.debug("Carrier adapter registered", carrier=carrier_type.value, adapter=cls.__name__)
        return cls

    return decorator


def default_registry() -> CarrierRegistry:
    """A copy of the built-in registry, safe for callers to extend."""
    return dict(_CARRIER_REGISTRY)


def registered_carriers() -> list[CarrierType]:
    return list(_CARRIER_REGISTRY)


def get_adapter(config: CarrierConfig, registry: CarrierRegistry | None = None) -> CarrierAdapter | None:
    """Instantiate the adapter for ``config.carrier`` or return None."""
    registry = _CARRIER_REGISTRY if registry is None else registry
    adapter_cls = registry.get(config.carrier)
    if adapter_cls is None:
        logger.warning("No adapter registered for carrier", carrier=config.carrier.value, config_id=config.id)
        return None
    return adapter_cls(config)


# Import carriers to trigger registration
# These imports must be at the bottom to avoid circular imports
from fulfillment.carrier.dhl import DHLCarrier  # noqa: E402, F401
from fulfillment.carrier.fedex import FedExCarrier  # noqa: E402, F401
from fulfillment.carrier.ups import UPSCarrier  # noqa: E402, F401
from fulfillment.carrier.usps import USPSCarrier  # noqa: E402, F401
