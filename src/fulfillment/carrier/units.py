"""Unit conversion and parcel geometry.

Pure functions shared by the carrier adapters and the packing subsystem.
Pounds and inches are the canonical units for carrier pricing.
"""

import math
from datetime import datetime, timedelta
from enum import Enum


class WeightUnit(str, Enum):
    LB = "lb"
    KG = "kg"
    OZ = "oz"
    G = "g"


class LengthUnit(str, Enum):
    IN = "in"
    CM = "cm"


POUNDS_PER_KILOGRAM = 2.20462
CENTIMETERS_PER_INCH = 2.54
DEFAULT_DIM_DIVISOR = 139

_TO_POUNDS = {
    WeightUnit.LB: 1.0,
    WeightUnit.KG: POUNDS_PER_KILOGRAM,
    WeightUnit.OZ: 1 / 16,
    WeightUnit.G: POUNDS_PER_KILOGRAM / 1000,
}

_TO_INCHES = {
    LengthUnit.IN: 1.0,
    LengthUnit.CM: 1 / CENTIMETERS_PER_INCH,
}


def convert_weight(weight: float, from_unit: WeightUnit | str, to_unit: WeightUnit | str) -> float:
    """Convert ``weight`` between lb, kg, oz and g (via pounds)."""
    from_unit, to_unit = WeightUnit(from_unit), WeightUnit(to_unit)
    if from_unit == to_unit:
        return weight
    return weight * _TO_POUNDS[from_unit] / _TO_POUNDS[to_unit]


def convert_length(length: float, from_unit: LengthUnit | str, to_unit: LengthUnit | str) -> float:
    from_unit, to_unit = LengthUnit(from_unit), LengthUnit(to_unit)
    if from_unit == to_unit:
        return length
    return length * _TO_INCHES[from_unit] / _TO_INCHES[to_unit]


def calculate_dimensional_weight(
    length: float,
    width: float,
    height: float,
    unit: LengthUnit | str = LengthUnit.IN,
    divisor: float = DEFAULT_DIM_DIVISOR,
) -> float:
    """Carrier-billed weight in pounds derived from package volume.

    Dimensions are converted to inches first; the result is rounded up to
    the next whole pound, as carriers bill it.
    """
    cubic_inches = (
        convert_length(length, unit, LengthUnit.IN)
        * convert_length(width, unit, LengthUnit.IN)
        * convert_length(height, unit, LengthUnit.IN)
    )
    # Guard against float noise (e.g. 278.00000000000006) rounding up a pound
    return float(math.ceil(round(cubic_inches / divisor, 6)))


def billable_weight(actual_pounds: float, dimensional_pounds: float) -> float:
    """Carriers bill whichever of actual and dimensional weight is larger."""
    return max(actual_pounds, dimensional_pounds)


def estimate_delivery_date(ship_date: datetime, estimated_days: int, exclude_weekends: bool = True) -> datetime:
    """Advance ``ship_date`` by ``estimated_days`` days.

    With ``exclude_weekends`` only Monday-Friday count, so the result never
    lands on a Saturday or Sunday.
    """
    date = ship_date
    days_added = 0
    while days_added < estimated_days:
        date += timedelta(days=1)
        if exclude_weekends and date.weekday() >= 5:
            continue
        days_added += 1
    return date
