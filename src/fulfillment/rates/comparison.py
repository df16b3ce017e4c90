"""Pick the cheapest, fastest and recommended quote from a rate set."""

from pydantic import BaseModel, ConfigDict

from fulfillment.carrier.models import ShippingRate
from fulfillment.exceptions import EmptyRateSet


class RateComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    cheapest: ShippingRate
    fastest: ShippingRate
    recommended: ShippingRate
    all_rates: tuple[ShippingRate, ...]


def recommendation_score(rate: ShippingRate) -> float:
    """Lower is better: one point per $10 plus two points per transit day."""
    return rate.rate / 10 + rate.estimated_days * 2


def compare_rates(rates: list[ShippingRate]) -> RateComparison:
    if not rates:
        raise EmptyRateSet()

    # min() keeps the first of equal keys, so ties resolve to the cheaper quote
    by_price = sorted(rates, key=lambda r: r.rate)
    return RateComparison(
        cheapest=by_price[0],
        fastest=min(by_price, key=lambda r: r.estimated_days),
        recommended=min(by_price, key=recommendation_score),
        all_rates=tuple(by_price),
    )
