"""Client-side input validation.

Every check runs before a request is sent and raises InputValidationError
carrying the message shown inline on the screen.
"""

import re

from moms_kitchen_client.exceptions import InputValidationError

_SIX_DIGITS = re.compile(r"^\d{6}$")

VEG_PREFERENCES = ("veg", "nonveg", "both")
AUTHENTICITY_OPTIONS = (
    "North Indian",
    "South Indian",
    "East Indian",
    "West Indian",
    "Fusion",
    "Any",
)


def validate_phone_number(phone_number: str | None) -> str:
    """Require a phone number to send an OTP to."""
    if not phone_number or not phone_number.strip():
        raise InputValidationError("Enter phone number")
    return phone_number.strip()


def validate_otp(code: str | None) -> str:
    """Require exactly six digits."""
    if not code or not _SIX_DIGITS.match(code):
        raise InputValidationError("Please enter a valid 6-digit OTP")
    return code


def validate_name(name: str | None) -> str:
    if not name or not name.strip():
        raise InputValidationError("Please enter your name")
    return name.strip()


def validate_address_fields(address_line: str, city: str, state: str, pincode: str) -> dict[str, str]:
    """Validate a new delivery address.

    Fields are checked in the order they appear on the form, and the first
    failure is reported.

    Returns:
        The request body for ``POST /api/users/addresses``
    """
    if not address_line or not address_line.strip():
        raise InputValidationError("Please enter your address")
    if not city or not city.strip():
        raise InputValidationError("Please enter your city")
    if not state or not state.strip():
        raise InputValidationError("Please enter your state")
    if not pincode or not _SIX_DIGITS.match(pincode):
        raise InputValidationError("Please enter a valid 6-digit pincode")

    return {
        "address_line": address_line.strip(),
        "city": city.strip(),
        "state": state.strip(),
        "pincode": pincode,
    }


def validate_preferences(veg_pref: str, authenticity: str, fav_dishes: str | None = None) -> dict[str, str]:
    """Validate dietary preferences.

    ``fav_dishes`` is only sent when provided.

    Returns:
        The request body for ``POST /api/users/preferences``
    """
    if veg_pref not in VEG_PREFERENCES:
        raise InputValidationError("Please choose a food type")
    if authenticity not in AUTHENTICITY_OPTIONS:
        raise InputValidationError("Please choose a cuisine")

    payload = {"veg_pref": veg_pref, "authenticity": authenticity}
    if fav_dishes:
        payload["fav_dishes"] = fav_dishes
    return payload
