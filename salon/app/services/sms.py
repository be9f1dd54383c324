"""SMS notifications through the Twilio REST API.

Used when an admin confirms a booking and for the day-before reminder.
Sending is best effort: failures are logged and reported as ``False``.
"""

from typing import Optional

import httpx

from salon.app.core.logging import get_logger
from salon.app.services.validation import normalize_phone_for_sms

logger = get_logger(__name__)

TWILIO_API_BASE_URL = "https://api.twilio.com/2010-04-01"


class SmsSender:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = TWILIO_API_BASE_URL,
    ):
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number and self._http)

    async def send(self, phone: str, message: str) -> bool:
        """Send ``message`` to ``phone``; True only if Twilio accepted it."""
        if not self.configured:
            logger.warning("[SMS] Twilio not configured (TWILIO_ACCOUNT_SID/AUTH_TOKEN/PHONE_NUMBER)")
            return False

        to = normalize_phone_for_sms(phone)
        if not to:
            logger.warning(f"[SMS] Invalid or empty phone: {phone!r}")
            return False

        try:
            response = await self._http.post(
                f"{self._base_url}/Accounts/{self._account_sid}/Messages.json",
                auth=(self._account_sid, self._auth_token),
                data={"To": to, "From": self._from_number, "Body": message},
            )
        except httpx.HTTPError as e:
            logger.error(f"[SMS] Send failed: {e}")
            return False

        if response.status_code not in (200, 201):
            logger.error(f"[SMS] Twilio rejected message ({response.status_code}): {response.text[:200]}")
            return False

        logger.info(f"[SMS] Sent message {response.json().get('sid')}")
        return True


def format_date_for_sms(iso_date: str) -> str:
    """``2026-03-15`` -> ``15.03.2026``; anything else is returned unchanged."""
    parts = iso_date.split("-")
    if len(parts) != 3 or not all(parts):
        return iso_date
    year, month, day = parts
    return f"{day}.{month}.{year}"


def _details(date: str, time: Optional[str], service: Optional[str]) -> str:
    time_part = f" {time}" if time else ""
    service_part = f" ({service})" if service else ""
    return f"{format_date_for_sms(date)}{time_part}{service_part}"


def confirmation_sms_text(
    language: str,
    date: str,
    time: Optional[str] = None,
    service: Optional[str] = None,
    brand: str = "Colorlab.lv",
) -> str:
    details = _details(date, time, service)
    if language == "ru":
        return f"{brand}: Ваша запись подтверждена на {details}. До встречи!"
    return f"{brand}: Jūsu pieraksts apstiprināts {details}. Līdz tikšanai!"


def reminder_sms_text(
    language: str,
    date: str,
    time: Optional[str] = None,
    service: Optional[str] = None,
    brand: str = "Colorlab.lv",
) -> str:
    details = _details(date, time, service)
    if language == "ru":
        return f"{brand}: Напоминание: завтра у вас запись на {details}. Ждём вас!"
    return f"{brand}: Atgādinājums: rīt jums ir pieraksts {details}. Gaidīsim!"
