"""Multi-carrier rate aggregation.

Fans a quote request out to every enabled carrier adapter concurrently,
merges the results and sorts them cheapest first. Each adapter call runs
under its own deadline; a failing or slow carrier becomes an
``AdapterFailure`` entry instead of failing the whole request.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from fulfillment.carrier import CarrierRegistry, default_registry, get_adapter
from fulfillment.carrier.models import Address, CarrierConfig, Parcel, ShippingRate
from fulfillment.carrier.port import CarrierAdapter
from fulfillment.config import get_settings
from fulfillment.exceptions import AdapterFailure, CarriersUnavailable

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RateQuoteResult:
    """Merged quotes plus the carriers that could not quote."""

    rates: list[ShippingRate] = field(default_factory=list)
    failures: list[AdapterFailure] = field(default_factory=list)


class RateAggregator:
    def __init__(
        self,
        registry: CarrierRegistry | None = None,
        timeout_seconds: float | None = None,
        max_concurrency: int | None = None,
    ):
        settings = get_settings()
        self.registry = registry if registry is not None else default_registry()
        self.timeout_seconds = timeout_seconds or settings.carrier_timeout_seconds
        self.max_concurrency = max_concurrency or settings.max_carrier_concurrency

    def adapters_for(self, carriers: Iterable[CarrierConfig]) -> list[tuple[CarrierConfig, CarrierAdapter]]:
        """Resolve adapters for the enabled configs, skipping unregistered carriers."""
        adapters = []
        for config in carriers:
            if not config.enabled:
                continue
            adapter = get_adapter(config, self.registry)
            if adapter is not None:
                adapters.append((config, adapter))
        return adapters

    async def shop(
        self,
        carriers: Iterable[CarrierConfig],
        origin: Address,
        destination: Address,
        parcel: Parcel,
    ) -> RateQuoteResult:
        """Quote every enabled carrier and partition results from failures.

        Raises:
            CarriersUnavailable: when at least one carrier was asked and all failed.
        """
        adapters = self.adapters_for(carriers)
        if not adapters:
            logger.warning("No enabled carriers to quote")
            return RateQuoteResult()

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _quote(config: CarrierConfig, adapter: CarrierAdapter) -> list[ShippingRate] | AdapterFailure:
            carrier = config.carrier.value
            async with semaphore:
                try:
                    rates = await asyncio.wait_for(
                        adapter.quote(origin, destination, parcel),
                        timeout=self.timeout_seconds,
                    )
                except TimeoutError:
                    logger.warning("Carrier quote timed out", carrier=carrier, timeout=self.timeout_seconds)
                    return AdapterFailure(carrier, f"timed out after {self.timeout_seconds}s", timed_out=True)
                except Exception as exc:
                    logger.warning("Carrier quote failed", carrier=carrier, error=str(exc))
                    return AdapterFailure(carrier, str(exc) or type(exc).__name__)

            logger.info("Carrier quoted", carrier=carrier, rate_count=len(rates))
            return rates

        outcomes = await asyncio.gather(*(_quote(config, adapter) for config, adapter in adapters))

        rates: list[ShippingRate] = []
        failures: list[AdapterFailure] = []
        for outcome in outcomes:
            if isinstance(outcome, AdapterFailure):
                failures.append(outcome)
            else:
                rates.extend(outcome)

        if failures and len(failures) == len(adapters):
            raise CarriersUnavailable(failures)

        rates.sort(key=lambda r: r.rate)
        return RateQuoteResult(rates=rates, failures=failures)

    async def get_shipping_rates(
        self,
        carriers: Iterable[CarrierConfig],
        origin: Address,
        destination: Address,
        parcel: Parcel,
    ) -> list[ShippingRate]:
        """All quotes from enabled carriers, cheapest first."""
        result = await self.shop(carriers, origin, destination, parcel)
        return result.rates
