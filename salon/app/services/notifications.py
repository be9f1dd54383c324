"""Fire-and-forget notifications triggered by record changes.

Notifications never delay or fail the request that triggered them: they run
as background tasks and any error is logged.
"""

import asyncio
from typing import Awaitable, Optional, Set

from salon.app.core.logging import get_logger
from salon.app.schemas import Record
from salon.app.services.email_service import EmailNotifier, NewBookingEmail
from salon.app.services.sms import SmsSender, confirmation_sms_text

logger = get_logger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        email: Optional[EmailNotifier] = None,
        sms: Optional[SmsSender] = None,
        sms_language: str = "ru",
        brand: str = "Colorlab.lv",
    ):
        self.email = email
        self.sms = sms
        self.sms_language = sms_language
        self.brand = brand
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _spawn(self, coro: Awaitable, description: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.error(f"Failed to send {description}: {exc}")

        task.add_done_callback(_done)
        return task

    def notify_new_booking(self, record: Record, during_vacation: bool = False) -> Optional[asyncio.Task]:
        if self.email is None:
            return None
        message = NewBookingEmail(
            name=record.client_name,
            phone=record.phone,
            service=record.service,
            date=record.date,
            time=record.time,
            social_media=record.social_media,
            comment=record.comment,
            source=record.source.value,
            created_at=record.created_at or "",
            during_vacation=during_vacation,
        )
        return self._spawn(self.email.send_new_booking(message), "email notification")

    def notify_confirmed(self, record: Record) -> Optional[asyncio.Task]:
        if self.sms is None or not record.phone:
            return None
        text = confirmation_sms_text(
            self.sms_language, record.date, record.time, record.service, brand=self.brand
        )
        return self._spawn(self.sms.send(record.phone, text), "confirmation SMS")

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for in-flight notifications, e.g. on shutdown."""
        if not self._tasks:
            return
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(f"Cancelled {len(pending)} unfinished notifications")
