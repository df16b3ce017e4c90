"""Postal address checks shared by the carrier adapters."""

import re

from fulfillment.carrier.models import Address, AddressValidationResult

_REQUIRED_FIELDS = (
    ("street1", "Street address is required"),
    ("city", "City is required"),
    ("state", "State is required"),
    ("postal_code", "Postal code is required"),
    ("country", "Country is required"),
)

_POSTAL_FORMATS = {
    "US": (re.compile(r"^\d{5}(-\d{4})?$"), "Invalid US postal code format"),
    "CA": (re.compile(r"^[A-Za-z]\d[A-Za-z] ?\d[A-Za-z]\d$"), "Invalid CA postal code format"),
}

_US_ZIP_PLUS_FOUR = re.compile(r"^(\d{5})(\d{4})$")


def check_address(address: Address) -> AddressValidationResult:
    """Validate required fields and the postal code format for ``address``."""
    errors = [message for field, message in _REQUIRED_FIELDS if not getattr(address, field).strip()]

    country = address.country.strip().upper()
    postal_code = address.postal_code.strip()
    if postal_code and country in _POSTAL_FORMATS:
        pattern, message = _POSTAL_FORMATS[country]
        if not pattern.match(postal_code):
            errors.append(message)

    suggestion = _suggest(address)
    return AddressValidationResult(
        is_valid=not errors,
        errors=tuple(errors),
        suggestions=(suggestion,) if suggestion else None,
    )


def _suggest(address: Address) -> Address | None:
    """Offer a normalized copy when casing or ZIP+4 punctuation is off."""
    changes = {}
    if address.country and address.country != address.country.strip().upper():
        changes["country"] = address.country.strip().upper()
    if address.state and len(address.state.strip()) == 2 and address.state != address.state.strip().upper():
        changes["state"] = address.state.strip().upper()

    zip_plus_four = _US_ZIP_PLUS_FOUR.match(address.postal_code.strip())
    if address.country.strip().upper() == "US" and zip_plus_four:
        changes["postal_code"] = f"{zip_plus_four.group(1)}-{zip_plus_four.group(2)}"

    if not changes:
        return None
    return address.model_copy(update=changes)
