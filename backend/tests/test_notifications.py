import json
from datetime import date, datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from app.core.config import Settings
from app.schemas.reminders import ReminderBooking, ReminderHost
from app.services.notifications import NotificationError, ReminderDispatcher, client_reminder_text, host_reminder_text
from app.utils.subscription import is_pro_active

pytestmark = pytest.mark.asyncio


def make_settings(**overrides):
    values = {
        "MAILGUN_API_KEY": "key-test",
        "MAILGUN_DOMAIN": "mg.example.com",
        "SEMAPHORE_API_KEY": "sem-test",
        "APP_URL": "https://isked.test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_booking(**kwargs):
    data = dict(
        id=11,
        client_name="Juan",
        client_email="juan@example.com",
        client_phone="+639171234567",
        date=date(2025, 12, 9),
        start_time="14:00",
        end_time="15:00",
        notes="Bring documents",
    )
    data.update(kwargs)
    return ReminderBooking(**data)


def make_host(**kwargs):
    data = dict(
        id=3,
        email="host@example.com",
        username="maria",
        name="Maria Santos",
        meeting_link="https://meet.example.com/abc",
        sms_phone="+639179999999",
        timezone="Asia/Manila",
        is_pro=True,
    )
    data.update(kwargs)
    return ReminderHost(**data)


class Recorder:
    def __init__(self, status_code=200, body=None):
        self.requests = []
        self.status_code = status_code
        self.body = body

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is not None:
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json={"id": "msg-1"})


def dispatcher(recorder, **overrides):
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return ReminderDispatcher(make_settings(**overrides), client), client


async def test_client_email_goes_to_mailgun():
    rec = Recorder()
    d, client = dispatcher(rec)
    async with client:
        await d.send_client_reminder_email(make_booking(), make_host())

    [req] = rec.requests
    assert req.method == "POST"
    assert str(req.url) == "https://api.mailgun.net/v3/mg.example.com/messages"
    assert req.headers["authorization"].startswith("Basic ")
    form = parse_qs(req.content.decode())
    assert form["to"] == ["juan@example.com"]
    assert form["from"] == ["isked <postmaster@mg.example.com>"]
    assert "Maria Santos" in form["subject"][0]
    assert "2:00 PM - 3:00 PM" in form["text"][0]
    assert "Tuesday, December 9, 2025" in form["text"][0]


async def test_host_email_goes_to_host():
    rec = Recorder()
    d, client = dispatcher(rec)
    async with client:
        await d.send_host_reminder_email(make_booking(), make_host())

    form = parse_qs(rec.requests[0].content.decode())
    assert form["to"] == ["host@example.com"]
    assert "https://isked.test/dashboard" in form["text"][0]


async def test_mailgun_error_raises():
    d, client = dispatcher(Recorder(status_code=502))
    async with client:
        with pytest.raises(NotificationError):
            await d.send_client_reminder_email(make_booking(), make_host())


async def test_email_disabled_without_credentials():
    rec = Recorder()
    d, client = dispatcher(rec, MAILGUN_API_KEY="")
    async with client:
        await d.send_client_reminder_email(make_booking(), make_host())
    assert rec.requests == []


async def test_sms_for_pro_host():
    rec = Recorder()
    d, client = dispatcher(rec)
    async with client:
        assert await d.send_client_reminder_sms(make_booking(), make_host()) is True
        assert await d.send_host_reminder_sms(make_booking(), make_host()) is True

    client_req, host_req = rec.requests
    assert str(client_req.url) == "https://api.semaphore.co/api/v4/messages"
    payload = json.loads(client_req.content)
    assert payload["number"] == "+639171234567"
    assert payload["sendername"] == "ISKED"
    assert payload["apikey"] == "sem-test"
    assert "2:00 PM" in payload["message"]
    assert json.loads(host_req.content)["number"] == "+639179999999"


async def test_sms_skipped_for_non_pro_or_expired_host():
    rec = Recorder()
    d, client = dispatcher(rec)
    expired = datetime.now(tz=timezone.utc) - timedelta(days=3)
    async with client:
        assert await d.send_client_reminder_sms(make_booking(), make_host(is_pro=False)) is False
        assert await d.send_host_reminder_sms(make_booking(), make_host(pro_expires_at=expired)) is False
    assert rec.requests == []


async def test_sms_skipped_without_phone_or_key():
    rec = Recorder()
    d, client = dispatcher(rec, SEMAPHORE_API_KEY="")
    async with client:
        assert await d.send_client_reminder_sms(make_booking(), make_host()) is False
        assert await d.send_client_reminder_sms(make_booking(client_phone=None), make_host()) is False
    assert rec.requests == []


async def test_semaphore_error_raises():
    d, client = dispatcher(Recorder(status_code=400))
    async with client:
        with pytest.raises(NotificationError):
            await d.send_host_reminder_sms(make_booking(), make_host())


async def test_accepted_send_with_non_json_body_counts_as_sent():
    rec = Recorder(body="Queued. Thank you.")
    d, client = dispatcher(rec)
    async with client:
        await d.send_client_reminder_email(make_booking(), make_host())
        assert await d.send_host_reminder_sms(make_booking(), make_host()) is True
    assert len(rec.requests) == 2


async def test_message_bodies_skip_empty_fields():
    booking = make_booking(notes=None, client_phone=None)
    host = make_host(meeting_link=None)
    _, client_text = client_reminder_text(booking, host)
    _, host_text = host_reminder_text(booking, host, "https://isked.test/")
    assert "Meeting link" not in client_text
    assert "Notes" not in client_text
    assert "Phone" not in host_text
    assert "https://isked.test/dashboard" in host_text


async def test_pro_gate():
    now = datetime(2025, 12, 9, tzinfo=timezone.utc)
    assert is_pro_active(True, None, now) is True
    assert is_pro_active(False, None, now) is False
    assert is_pro_active(None, None, now) is False
    assert is_pro_active(True, now + timedelta(days=5), now) is True
    # one day of grace after expiry
    assert is_pro_active(True, now - timedelta(hours=12), now) is True
    assert is_pro_active(True, now - timedelta(days=2), now) is False
    # naive expiry is read as UTC
    assert is_pro_active(True, datetime(2025, 12, 20), now) is True
