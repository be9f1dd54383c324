"""Phone number normalization for SMS delivery."""

import re
from typing import Optional


def normalize_phone_for_sms(phone: str) -> Optional[str]:
    """Normalize a phone number to E.164, assuming Latvia (+371) by default.

    Accepts ``21234567``, ``+37121234567`` and ``37121234567``. Returns None
    for anything with fewer than 8 digits.
    """
    if not phone or not isinstance(phone, str):
        return None
    digits = re.sub(r"\D", "", phone)
    if len(digits) < 8:
        return None

    stripped = phone.strip()
    if stripped.startswith("+"):
        return re.sub(r"\s", "", stripped)
    if stripped.startswith("00"):
        return f"+{digits[2:]}"
    if len(digits) == 8 and digits[0] in ("2", "6"):
        return f"+371{digits}"
    if digits.startswith("371") and len(digits) >= 11:
        return f"+{digits}"
    if digits.startswith("7") and len(digits) == 11:
        return f"+{digits}"
    return f"+371{digits[-8:]}"
