"""Keyed, TTL-bound cache for rate-shopping results.

One instance is constructed by the caller and shared by reference. The
entry map is guarded by a lock so threads can share it; concurrent misses
on the same key inside one event loop share a single in-flight fetch.
"""

import asyncio
import json
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from fulfillment.carrier.models import Address, Parcel, ShippingRate
from fulfillment.config import get_settings

logger = structlog.get_logger(__name__)

RateFetch = Callable[[], Awaitable[list[ShippingRate]]]


@dataclass(frozen=True)
class _CacheEntry:
    rates: tuple[ShippingRate, ...]
    stored_at: float


class RateCache:
    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds or get_settings().rate_cache_ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._inflight: dict[str, asyncio.Future] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(origin: Address, destination: Address, parcel: Parcel) -> str:
        """Canonical serialization of the request triple."""
        return json.dumps(
            {
                "from": origin.model_dump(mode="json"),
                "to": destination.model_dump(mode="json"),
                "parcel": parcel.model_dump(mode="json"),
            },
            sort_keys=True,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> list[ShippingRate] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return list(entry.rates)

    def set(self, key: str, rates: list[ShippingRate]) -> None:
        with self._lock:
            self._entries[key] = _CacheEntry(rates=tuple(rates), stored_at=self._clock())

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    async def get_or_fetch(self, key: str, fetch: RateFetch, force_refresh: bool = False) -> list[ShippingRate]:
        """Serve ``key`` from cache, or run ``fetch`` once and store its result."""
        if not force_refresh:
            cached = self.get(key)
            if cached is not None:
                logger.debug("Rate cache hit")
                return cached

        loop = asyncio.get_running_loop()
        future: asyncio.Future | None = None
        with self._lock:
            inflight = self._inflight.get(key)
            if inflight is None:
                future = loop.create_future()
                # Mark exceptions retrieved so unobserved failures are not logged by asyncio
                future.add_done_callback(lambda f: f.cancelled() or f.exception())
                self._inflight[key] = future

        if future is None:
            if inflight.get_loop() is loop:
                logger.debug("Joining in-flight rate fetch")
                return list(await asyncio.shield(inflight))
            # In flight on another thread's loop: fetch independently
            rates = await fetch()
            self.set(key, rates)
            return rates

        logger.debug("Rate cache miss", force_refresh=force_refresh)
        try:
            rates = await fetch()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            raise
        else:
            self.set(key, rates)
            future.set_result(list(rates))
            return rates
        finally:
            with self._lock:
                if self._inflight.get(key) is future:
                    del self._inflight[key]
