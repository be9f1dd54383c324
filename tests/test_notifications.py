"""Tests for SMS, email and the background notification dispatcher."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from salon.app.exceptions import NotConfiguredError
from salon.app.schemas import Record, RecordStatus
from salon.app.services.email_service import (
    EmailNotifier,
    NewBookingEmail,
    format_date_time,
    render_new_booking_html,
)
from salon.app.services.notifications import NotificationDispatcher
from salon.app.services.reminders import send_tomorrow_reminders
from salon.app.services.sms import (
    SmsSender,
    confirmation_sms_text,
    format_date_for_sms,
    reminder_sms_text,
)
from salon.app.storage import InMemoryRepository


def twilio(calls: list, status: int = 201) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status, json={"sid": "SM123"})
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_record(**overrides) -> Record:
    data = dict(
        id="record-1",
        client_name="Anna",
        phone="21234567",
        service="Coloring",
        date="2026-05-11",
        time="10:00",
        created_at="2026-05-01T10:00:00Z",
    )
    data.update(overrides)
    return Record(**data)


class TestSmsTexts:

    def test_format_date(self):
        assert format_date_for_sms("2026-03-15") == "15.03.2026"
        assert format_date_for_sms("soon") == "soon"

    def test_confirmation_ru(self):
        text = confirmation_sms_text("ru", "2026-03-15", "10:00", "Coloring")
        assert text == "Colorlab.lv: Ваша запись подтверждена на 15.03.2026 10:00 (Coloring). До встречи!"

    def test_confirmation_lv_without_time(self):
        text = confirmation_sms_text("lv", "2026-03-15", brand="Salon")
        assert text == "Salon: Jūsu pieraksts apstiprināts 15.03.2026. Līdz tikšanai!"

    def test_reminder(self):
        assert "завтра" in reminder_sms_text("ru", "2026-03-15", "10:00")
        assert "rīt" in reminder_sms_text("lv", "2026-03-15", "10:00")


class TestSmsSender:

    @pytest.mark.asyncio
    async def test_sends_normalized_number(self):
        calls = []
        sender = SmsSender("AC1", "secret", "+15550000", http_client=twilio(calls), base_url="https://twilio.test")

        assert await sender.send("2123 4567", "hello") is True
        [request] = calls
        assert request.url.path == "/Accounts/AC1/Messages.json"
        form = dict(httpx.QueryParams(request.content.decode()))
        assert form == {"To": "+37121234567", "From": "+15550000", "Body": "hello"}
        assert request.headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        sender = SmsSender("", "", "", http_client=twilio([]))
        assert sender.configured is False
        assert await sender.send("21234567", "hello") is False

    @pytest.mark.asyncio
    async def test_invalid_phone(self):
        calls = []
        sender = SmsSender("AC1", "secret", "+1555", http_client=twilio(calls))
        assert await sender.send("123", "hello") is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_rejected_by_provider(self):
        sender = SmsSender("AC1", "secret", "+1555", http_client=twilio([], status=400))
        assert await sender.send("21234567", "hello") is False

    @pytest.mark.asyncio
    async def test_network_error_is_swallowed(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sender = SmsSender("AC1", "secret", "+1555", http_client=client)
        assert await sender.send("21234567", "hello") is False


class TestEmail:

    def booking(self, **overrides) -> NewBookingEmail:
        data = dict(
            name="Anna <script>",
            phone="21234567",
            service="Coloring",
            date="2026-05-11",
            time="10:00",
            created_at="2026-05-01T10:00:00Z",
        )
        data.update(overrides)
        return NewBookingEmail(**data)

    def test_format_date_time(self):
        assert format_date_time("2026-05-11", "10:00") == "11.05.2026 • 10:00"
        assert format_date_time("2026-05-11") == "11.05.2026"

    def test_html_escapes_values(self):
        html = render_new_booking_html(self.booking())
        assert "Anna &lt;script&gt;" in html
        assert "<script>" not in html
        assert "11.05.2026 • 10:00" in html

    def test_vacation_warning(self):
        assert "отпуска" in render_new_booking_html(self.booking(during_vacation=True))
        assert "отпуска" not in render_new_booking_html(self.booking())

    @pytest.mark.asyncio
    async def test_requires_credentials(self):
        notifier = EmailNotifier("", "")
        with pytest.raises(NotConfiguredError):
            await notifier.send_new_booking(self.booking())

    @pytest.mark.asyncio
    async def test_sends_over_smtp_ssl(self):
        notifier = EmailNotifier("salon@gmail.com", "app-pass", recipient="owner@gmail.com")
        with patch("salon.app.services.email_service.smtplib.SMTP_SSL") as smtp:
            await notifier.send_new_booking(self.booking())

        server = smtp.return_value
        server.login.assert_called_once_with("salon@gmail.com", "app-pass")
        sender, recipients, _ = server.sendmail.call_args.args
        assert sender == "salon@gmail.com"
        assert recipients == ["owner@gmail.com"]
        server.quit.assert_called_once()


class TestNotificationDispatcher:

    @pytest.mark.asyncio
    async def test_new_booking_runs_in_background(self):
        email = Mock()
        email.send_new_booking = AsyncMock()
        dispatcher = NotificationDispatcher(email=email)

        task = dispatcher.notify_new_booking(make_record(), during_vacation=True)
        assert task is not None
        await dispatcher.drain()

        message = email.send_new_booking.call_args.args[0]
        assert message.name == "Anna"
        assert message.during_vacation is True
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_failures_are_logged_not_raised(self):
        email = Mock()
        email.send_new_booking = AsyncMock(side_effect=OSError("smtp down"))
        dispatcher = NotificationDispatcher(email=email)

        with patch("salon.app.services.notifications.logger") as mock_logger:
            dispatcher.notify_new_booking(make_record())
            await dispatcher.drain()
            await asyncio.sleep(0)

        assert "smtp down" in mock_logger.error.call_args.args[0]

    @pytest.mark.asyncio
    async def test_confirmation_sms(self):
        sms = Mock()
        sms.send = AsyncMock(return_value=True)
        dispatcher = NotificationDispatcher(sms=sms, sms_language="lv")

        dispatcher.notify_confirmed(make_record())
        await dispatcher.drain()

        phone, text = sms.send.call_args.args
        assert phone == "21234567"
        assert "apstiprināts 11.05.2026 10:00" in text

    def test_disabled_channels(self):
        dispatcher = NotificationDispatcher()
        assert dispatcher.notify_new_booking(make_record()) is None
        assert dispatcher.notify_confirmed(make_record()) is None

    @pytest.mark.asyncio
    async def test_drain_cancels_slow_tasks(self):
        async def hang(*args):
            await asyncio.sleep(10)

        email = Mock()
        email.send_new_booking = hang
        dispatcher = NotificationDispatcher(email=email)
        dispatcher.notify_new_booking(make_record())

        await dispatcher.drain(timeout=0.01)
        await asyncio.sleep(0.05)
        assert dispatcher.pending == 0


class TestReminders:

    @pytest.mark.asyncio
    async def test_only_confirmed_bookings_for_tomorrow(self):
        repo = InMemoryRepository(records=[
            make_record(id="a", status=RecordStatus.CONFIRMED, date="2026-05-11"),
            make_record(id="b", status=RecordStatus.NEW, date="2026-05-11"),
            make_record(id="c", status=RecordStatus.CONFIRMED, date="2026-05-12"),
            make_record(id="d", status=RecordStatus.CONFIRMED, date="2026-05-11", phone=""),
            make_record(id="e", status=RecordStatus.CONFIRMED, date="2026-05-11", phone="21234568"),
        ])
        sms = Mock()
        sms.send = AsyncMock(side_effect=[True, False])

        result = await send_tomorrow_reminders(repo, sms, language="ru", today=date(2026, 5, 10))

        assert result == {"ok": True, "tomorrow": "2026-05-11", "total": 2, "sent": 1}
        assert [c.args[0] for c in sms.send.call_args_list] == ["21234567", "21234568"]
        assert "Напоминание" in sms.send.call_args_list[0].args[1]
