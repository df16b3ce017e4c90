"""Rate shopping facade: aggregation behind an injected cache.

``RateShopper`` is the entry point callers hold on to. It owns no global
state; the aggregator and cache are passed in (or built from settings) and
shared by reference.
"""

from collections.abc import Iterable

import structlog

from fulfillment.carrier.models import Address, CarrierConfig, Parcel, ShippingRate
from fulfillment.rates.aggregator import RateAggregator
from fulfillment.rates.cache import RateCache
from fulfillment.rates.comparison import RateComparison, compare_rates

logger = structlog.get_logger(__name__)


class RateShopper:
    def __init__(self, aggregator: RateAggregator | None = None, cache: RateCache | None = None):
        self.aggregator = aggregator if aggregator is not None else RateAggregator()
        self.cache = cache if cache is not None else RateCache()

    async def get_shipping_rates(
        self,
        carriers: Iterable[CarrierConfig],
        origin: Address,
        destination: Address,
        parcel: Parcel,
    ) -> list[ShippingRate]:
        """Quote every enabled carrier without consulting the cache."""
        return await self.aggregator.get_shipping_rates(carriers, origin, destination, parcel)

    async def get_cached_rates(
        self,
        carriers: Iterable[CarrierConfig],
        origin: Address,
        destination: Address,
        parcel: Parcel,
        force_refresh: bool = False,
    ) -> list[ShippingRate]:
        """Quotes for the request triple, served from cache within the TTL.

        The cache key covers origin, destination and parcel only; callers
        shopping different carrier sets for the same triple share an entry.
        """
        carriers = list(carriers)
        key = self.cache.make_key(origin, destination, parcel)

        async def _fetch() -> list[ShippingRate]:
            return await self.aggregator.get_shipping_rates(carriers, origin, destination, parcel)

        rates = await self.cache.get_or_fetch(key, _fetch, force_refresh=force_refresh)
        logger.debug("Rates served", rate_count=len(rates), force_refresh=force_refresh)
        return rates

    async def compare(
        self,
        carriers: Iterable[CarrierConfig],
        origin: Address,
        destination: Address,
        parcel: Parcel,
    ) -> RateComparison:
        rates = await self.get_cached_rates(carriers, origin, destination, parcel)
        return compare_rates(rates)

    def clear_rate_cache(self) -> None:
        self.cache.clear()
        logger.info("Rate cache cleared")
