"""DHL adapter — international-focused rate card.

DHL prices domestic lanes flat (no interstate surcharge) and quotes longer
transit times with higher multipliers for cross-border shipments.
"""

from fulfillment.carrier import register_carrier
from fulfillment.carrier.models import CarrierType, ServiceLevel, TrackingStatus
from fulfillment.carrier.rate_card import RateCardCarrier, ServiceOption

DHL_STATUS_MAP = {
    "PRE-TRANSIT": TrackingStatus.PRE_TRANSIT,
    "TRANSIT": TrackingStatus.IN_TRANSIT,
    "OUT-FOR-DELIVERY": TrackingStatus.OUT_FOR_DELIVERY,
    "DELIVERED": TrackingStatus.DELIVERED,
    "RETURNED": TrackingStatus.RETURNED,
    "FAILURE": TrackingStatus.EXCEPTION,
}


@register_carrier(CarrierType.DHL)
class DHLCarrier(RateCardCarrier):
    carrier_type = CarrierType.DHL
    carrier_name = "DHL"
    per_pound = 0.60
    interstate_factor = 1.0
    tracking_prefix = "DHL"
    services = (
        ServiceOption(
            "DHL_ECONOMY_SELECT",
            ServiceLevel.ECONOMY,
            1.0,
            5,
            international_multiplier=2.0,
            international_days=7,
        ),
        ServiceOption(
            "DHL_EXPRESS_WORLDWIDE",
            ServiceLevel.INTERNATIONAL,
            1.5,
            2,
            guaranteed=True,
            international_multiplier=3.0,
            international_days=3,
        ),
        ServiceOption(
            "DHL_EXPRESS_1200",
            ServiceLevel.OVERNIGHT,
            4.0,
            1,
            guaranteed=True,
            international_multiplier=5.0,
            international_days=2,
        ),
    )
    status_codes = DHL_STATUS_MAP
    webhook_keys = {
        "tracking_number": "shipmentTrackingNumber",
        "status": "statusCode",
        "status_detail": "description",
    }
