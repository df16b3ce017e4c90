"""USPS adapter — rate card and tracking event codes."""

from fulfillment.carrier import register_carrier
from fulfillment.carrier.models import CarrierType, ServiceLevel, TrackingStatus
from fulfillment.carrier.rate_card import RateCardCarrier, ServiceOption

USPS_STATUS_MAP = {
    "GX": TrackingStatus.PRE_TRANSIT,
    "03": TrackingStatus.IN_TRANSIT,
    "10": TrackingStatus.IN_TRANSIT,
    "OF": TrackingStatus.OUT_FOR_DELIVERY,
    "01": TrackingStatus.DELIVERED,
    "09": TrackingStatus.RETURNED,
    "16": TrackingStatus.EXCEPTION,
}


@register_carrier(CarrierType.USPS)
class USPSCarrier(RateCardCarrier):
    carrier_type = CarrierType.USPS
    carrier_name = "USPS"
    per_pound = 0.40
    dim_divisor = 166
    tracking_prefix = "9400"
    services = (
        ServiceOption("USPS_GROUND_ADVANTAGE", ServiceLevel.GROUND, 1.0, 5),
        ServiceOption("USPS_PRIORITY_MAIL", ServiceLevel.EXPRESS, 1.6, 3),
        ServiceOption("USPS_PRIORITY_MAIL_EXPRESS", ServiceLevel.OVERNIGHT, 3.0, 1, guaranteed=True),
    )
    status_codes = USPS_STATUS_MAP
    webhook_keys = {
        "status": "eventCode",
        "timestamp": "eventDateTime",
        "details": "event",
    }
