import re

from whatsapp_gateway.exceptions import InvalidPhoneNumberError

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone_number: str) -> str:
    """
    Normalize a phone number to digits only.

    "+55 11 99999-0000" -> "5511999990000"
    "5511999990000@s.whatsapp.net" -> "5511999990000"
    """
    local_part = (phone_number or "").split("@", 1)[0]
    normalized = _NON_DIGITS.sub("", local_part)
    if not normalized:
        raise InvalidPhoneNumberError(f"Invalid phone number: {phone_number!r}")
    return normalized
