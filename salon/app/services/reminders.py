"""Day-before SMS reminders for confirmed bookings."""

from datetime import date, timedelta
from typing import Optional

from salon.app.core.logging import get_logger
from salon.app.schemas import RecordStatus
from salon.app.services.sms import SmsSender, reminder_sms_text
from salon.app.storage.base import Repository

logger = get_logger(__name__)


async def send_tomorrow_reminders(
    repository: Repository,
    sms: SmsSender,
    language: str = "ru",
    brand: str = "Colorlab.lv",
    today: Optional[date] = None,
) -> dict:
    """Remind every confirmed client with a phone number booked for tomorrow.

    Messages go out one at a time; a failed send only lowers ``sent``.
    """
    tomorrow = ((today or date.today()) + timedelta(days=1)).isoformat()
    records = await repository.list_records()
    to_remind = [
        r for r in records
        if r.date == tomorrow and r.status == RecordStatus.CONFIRMED and r.phone
    ]

    sent = 0
    for record in to_remind:
        text = reminder_sms_text(language, record.date, record.time, record.service, brand=brand)
        if await sms.send(record.phone, text):
            sent += 1

    logger.info(f"Reminders for {tomorrow}: {sent}/{len(to_remind)} sent")
    return {"ok": True, "tomorrow": tomorrow, "total": len(to_remind), "sent": sent}
