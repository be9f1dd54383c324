"""New-booking email notifications over SMTP."""

import asyncio
import smtplib
import ssl
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from salon.app.core.logging import get_logger
from salon.app.exceptions import NotConfiguredError
from salon.app.services.sms import format_date_for_sms

logger = get_logger(__name__)

SOURCE_LABELS = {"client": "Клиент", "master": "Мастер"}


@dataclass
class NewBookingEmail:
    name: str
    phone: str
    service: str
    date: str
    created_at: str
    time: str = ""
    social_media: str = ""
    comment: str = ""
    source: str = "client"
    during_vacation: bool = False


def format_date_time(date: str, time: Optional[str] = None) -> str:
    formatted = format_date_for_sms(date)
    return f"{formatted} • {time}" if time else formatted


def _format_created_at(value: str) -> str:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.astimezone().strftime("%d.%m.%Y %H:%M")


def render_new_booking_html(data: NewBookingEmail) -> str:
    rows = [
        ("Клиент", data.name),
        ("Телефон", data.phone),
        ("Соцсети", data.social_media),
        ("Услуга", data.service),
        ("Дата и время", format_date_time(data.date, data.time)),
        ("Комментарий", data.comment),
        ("Источник", SOURCE_LABELS.get(data.source, "Сайт")),
        ("Создано", _format_created_at(data.created_at)),
    ]
    body = "\n".join(
        f'<tr><td style="color:#6b7280;padding:6px 12px">{escape(label)}</td>'
        f'<td style="padding:6px 12px"><strong>{escape(value)}</strong></td></tr>'
        for label, value in rows
        if value
    )
    warning = ""
    if data.during_vacation:
        warning = (
            '<p style="background:#fef3c7;padding:12px;border-radius:8px">'
            "⚠️ Запись сделана на период отпуска</p>"
        )
    return (
        '<!DOCTYPE html><html lang="ru"><head><meta charset="UTF-8">'
        "<title>Новая запись</title></head>"
        '<body style="font-family:Arial,sans-serif;background:#f3f4f6;padding:24px">'
        '<div style="max-width:650px;margin:0 auto;background:#fff;border-radius:12px">'
        '<h1 style="background:#4f46e5;color:#fff;padding:24px;margin:0;border-radius:12px 12px 0 0">'
        "Новая запись</h1>"
        f'<div style="padding:24px">{warning}<table>{body}</table></div>'
        "</div></body></html>"
    )


class EmailNotifier:
    def __init__(
        self,
        user: str,
        password: str,
        recipient: str = "",
        host: str = "smtp.gmail.com",
        port: int = 465,
    ):
        self._user = user
        self._password = password
        self._recipient = recipient or user
        self._host = host
        self._port = port

    @property
    def configured(self) -> bool:
        return bool(self._user and self._password)

    def _send_sync(self, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._user
        msg["To"] = self._recipient
        msg.attach(MIMEText(html, "html", "utf-8"))

        context = ssl.create_default_context()
        if self._port == 465:
            server = smtplib.SMTP_SSL(self._host, self._port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(self._host, self._port, timeout=30)
            server.starttls(context=context)
        try:
            server.login(self._user, self._password)
            server.sendmail(self._user, [self._recipient], msg.as_string())
        finally:
            server.quit()

    async def send_new_booking(self, data: NewBookingEmail) -> None:
        """Send the salon a notification about a new booking.

        Raises:
            NotConfiguredError: no SMTP credentials
            smtplib.SMTPException, OSError: delivery failed
        """
        if not self.configured:
            raise NotConfiguredError("Email credentials are not configured")

        subject = f"Новая запись: {data.name}, {format_date_time(data.date, data.time)}"
        await asyncio.to_thread(self._send_sync, subject, render_new_booking_html(data))
        logger.info("New booking email sent")
