from .parsers import (
    ensure_object,
    parse_client_registration,
    parse_int,
    parse_new_registration,
    parse_redemption_request,
    parse_text,
)
from .types import (
    AddressData,
    ClientRegistrationData,
    NewRegistrationData,
    RedemptionRequestData,
)
from .validation import (
    validate_client_registration,
    validate_new_registration,
    validate_redemption_request,
)

__all__ = [
    "AddressData",
    "ClientRegistrationData",
    "NewRegistrationData",
    "RedemptionRequestData",
    "ensure_object",
    "parse_client_registration",
    "parse_int",
    "parse_new_registration",
    "parse_redemption_request",
    "parse_text",
    "validate_client_registration",
    "validate_new_registration",
    "validate_redemption_request",
]
