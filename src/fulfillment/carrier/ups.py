"""UPS adapter — rate card and activity status types."""

from fulfillment.carrier import register_carrier
from fulfillment.carrier.models import CarrierType, ServiceLevel, TrackingStatus
from fulfillment.carrier.rate_card import RateCardCarrier, ServiceOption

# UPS activity status types
UPS_STATUS_MAP = {
    "M": TrackingStatus.PRE_TRANSIT,
    "P": TrackingStatus.IN_TRANSIT,
    "I": TrackingStatus.IN_TRANSIT,
    "O": TrackingStatus.OUT_FOR_DELIVERY,
    "D": TrackingStatus.DELIVERED,
    "RS": TrackingStatus.RETURNED,
    "X": TrackingStatus.EXCEPTION,
}


@register_carrier(CarrierType.UPS)
class UPSCarrier(RateCardCarrier):
    carrier_type = CarrierType.UPS
    carrier_name = "UPS"
    per_pound = 0.45
    tracking_prefix = "1Z"
    services = (
        ServiceOption("UPS_GROUND", ServiceLevel.GROUND, 1.0, 5),
        ServiceOption("UPS_3_DAY_SELECT", ServiceLevel.EXPRESS, 1.8, 3, guaranteed=True),
        ServiceOption("UPS_NEXT_DAY_AIR", ServiceLevel.OVERNIGHT, 3.5, 1, guaranteed=True),
    )
    status_codes = UPS_STATUS_MAP
    webhook_keys = {
        "tracking_number": "inquiryNumber",
        "status": "statusType",
        "timestamp": "activityTimestamp",
        "status_detail": "statusDescription",
    }
