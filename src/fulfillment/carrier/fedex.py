"""FedEx adapter — rate card and status codes."""

from fulfillment.carrier import register_carrier
from fulfillment.carrier.models import CarrierType, ServiceLevel, TrackingStatus
from fulfillment.carrier.rate_card import RateCardCarrier, ServiceOption

FEDEX_STATUS_MAP = {
    "OC": TrackingStatus.PRE_TRANSIT,
    "PU": TrackingStatus.IN_TRANSIT,
    "IT": TrackingStatus.IN_TRANSIT,
    "AR": TrackingStatus.IN_TRANSIT,
    "OD": TrackingStatus.OUT_FOR_DELIVERY,
    "DL": TrackingStatus.DELIVERED,
    "RS": TrackingStatus.RETURNED,
    "DE": TrackingStatus.EXCEPTION,
    "CA": TrackingStatus.CANCELLED,
}


@register_carrier(CarrierType.FEDEX)
class FedExCarrier(RateCardCarrier):
    carrier_type = CarrierType.FEDEX
    carrier_name = "FedEx"
    per_pound = 0.50
    tracking_prefix = "7739"
    services = (
        ServiceOption("FEDEX_GROUND", ServiceLevel.GROUND, 1.0, 5),
        ServiceOption("FEDEX_EXPRESS_SAVER", ServiceLevel.EXPRESS, 2.0, 3, guaranteed=True),
        ServiceOption("FEDEX_OVERNIGHT", ServiceLevel.OVERNIGHT, 4.0, 1, guaranteed=True),
    )
    status_codes = FEDEX_STATUS_MAP
    webhook_keys = {
        "status": "eventType",
        "timestamp": "eventTimestamp",
        "status_detail": "eventDescription",
    }
