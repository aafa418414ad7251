"""Outbound reminder transports.

The reminder engine only depends on the ``ReminderNotifier`` protocol. The
concrete ``ReminderDispatcher`` sends email through Mailgun and SMS through
Semaphore; a transport without credentials logs what it would have sent and
returns without error.

The SMS methods return False when a message is deliberately not sent (no phone,
host without an active Pro subscription, SMS transport not configured).
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

import httpx

from app.core.config import Settings, settings as default_settings
from app.schemas.reminders import ReminderBooking, ReminderHost
from app.utils.subscription import is_pro_active

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 10.0


class NotificationError(RuntimeError):
    """A transport answered with a non-success status."""


class ReminderNotifier(Protocol):
    async def send_client_reminder_email(self, booking: ReminderBooking, host: ReminderHost) -> None: ...

    async def send_host_reminder_email(self, booking: ReminderBooking, host: ReminderHost) -> None: ...

    async def send_client_reminder_sms(self, booking: ReminderBooking, host: ReminderHost) -> bool: ...

    async def send_host_reminder_sms(self, booking: ReminderBooking, host: ReminderHost) -> bool: ...


def _host_name(host: ReminderHost) -> str:
    return host.name or host.full_name or host.username or "your host"


def _long_date(booking: ReminderBooking) -> str:
    d = booking.date
    return f"{d.strftime('%A, %B')} {d.day}, {d.year}"


def client_reminder_text(booking: ReminderBooking, host: ReminderHost) -> tuple[str, str]:
    name = _host_name(host)
    subject = f"Reminder: your appointment with {name} starts in 30 minutes"
    lines = [
        f"Hello {booking.client_name},",
        "",
        f"This is a reminder that your appointment with {name} starts in 30 minutes.",
        "",
        "Details:",
        f"- Date: {_long_date(booking)}",
        f"- Time: {booking.formatted_start_time} - {booking.formatted_end_time}",
    ]
    if host.meeting_link:
        lines.append(f"- Meeting link: {host.meeting_link}")
    if booking.notes:
        lines.append(f"- Notes: {booking.notes}")
    lines += ["", "See you soon!"]
    return subject, "\n".join(lines)


def host_reminder_text(booking: ReminderBooking, host: ReminderHost, app_url: str) -> tuple[str, str]:
    subject = f"Reminder: {booking.client_name} in 30 minutes"
    lines = [
        f"Hello {_host_name(host)},",
        "",
        f"Your appointment with {booking.client_name} starts in 30 minutes.",
        "",
        "Client:",
        f"- Name: {booking.client_name}",
    ]
    if booking.client_email:
        lines.append(f"- Email: {booking.client_email}")
    if booking.client_phone:
        lines.append(f"- Phone: {booking.client_phone}")
    lines += [
        "",
        "Appointment:",
        f"- Date: {_long_date(booking)}",
        f"- Time: {booking.formatted_start_time} - {booking.formatted_end_time}",
    ]
    if booking.notes:
        lines.append(f"- Notes: {booking.notes}")
    lines += ["", f"Manage your appointments: {app_url.rstrip('/')}/dashboard"]
    return subject, "\n".join(lines)


def client_reminder_sms_text(booking: ReminderBooking, host: ReminderHost) -> str:
    message = f"Hi {booking.client_name}, reminder: your meeting with {_host_name(host)} starts at {booking.formatted_start_time} (in 30 mins)."
    if host.meeting_link:
        message += f"\nMeeting Link: {host.meeting_link}"
    return message


def host_reminder_sms_text(booking: ReminderBooking, host: ReminderHost) -> str:
    return f"Reminder: {booking.client_name} at {booking.formatted_start_time} (in 30 mins)."


class MailgunMailer:
    def __init__(self, cfg: Settings, client: httpx.AsyncClient | None = None):
        self.enabled = cfg.email_enabled
        self.domain = cfg.mailgun_domain
        self._api_key = cfg.mailgun_api_key
        self._base_url = cfg.mailgun_base_url.rstrip("/")
        self._client = client
        if not self.enabled:
            logger.warning("Mailgun configuration missing. Email functionality will be disabled.")

    async def send(self, to: str, subject: str, text: str) -> bool:
        if not self.enabled:
            logger.info("Email disabled: would have sent %r to %s", subject, to)
            return False
        data = {
            "from": f"isked <postmaster@{self.domain}>",
            "to": to,
            "subject": subject,
            "text": text,
        }
        url = f"{self._base_url}/v3/{self.domain}/messages"
        auth = ("api", self._api_key or "")
        if self._client is not None:
            response = await self._client.post(url, data=data, auth=auth)
        else:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
                response = await client.post(url, data=data, auth=auth)
        if response.status_code >= 400:
            raise NotificationError(f"Mailgun returned {response.status_code}: {response.text[:200]}")
        logger.debug("Mailgun accepted %r for %s", subject, to)
        return True


class SemaphoreSms:
    def __init__(self, cfg: Settings, client: httpx.AsyncClient | None = None):
        self.enabled = cfg.sms_enabled
        self._api_key = cfg.semaphore_api_key
        self._sender = cfg.semaphore_sender
        self._url = cfg.semaphore_api_url
        self._client = client

    async def send(self, number: str, message: str) -> bool:
        if not self.enabled:
            logger.info("SMS disabled: would have sent reminder to %s", number)
            return False
        payload = {
            "apikey": self._api_key,
            "number": number,
            "message": message.strip(),
            "sendername": self._sender,
        }
        if self._client is not None:
            response = await self._client.post(self._url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
                response = await client.post(self._url, json=payload)
        if response.status_code >= 400:
            raise NotificationError(f"Semaphore returned {response.status_code}: {response.text[:200]}")
        logger.debug("Semaphore accepted reminder for %s", number)
        return True


class ReminderDispatcher:
    """Production ReminderNotifier: Mailgun email plus Pro-only Semaphore SMS."""

    def __init__(self, cfg: Settings | None = None, client: httpx.AsyncClient | None = None):
        cfg = cfg or default_settings
        self.app_url = cfg.app_url
        self.mailer = MailgunMailer(cfg, client)
        self.sms = SemaphoreSms(cfg, client)

    async def send_client_reminder_email(self, booking: ReminderBooking, host: ReminderHost) -> None:
        if not booking.client_email:
            return
        subject, text = client_reminder_text(booking, host)
        await self.mailer.send(booking.client_email, subject, text)

    async def send_host_reminder_email(self, booking: ReminderBooking, host: ReminderHost) -> None:
        if not host.email:
            return
        subject, text = host_reminder_text(booking, host, self.app_url)
        await self.mailer.send(host.email, subject, text)

    def _sms_allowed(self, host: ReminderHost, now: datetime | None = None) -> bool:
        if not is_pro_active(host.is_pro, host.pro_expires_at, now):
            logger.info("SMS not sent: host %s does not have an active pro subscription", host.id)
            return False
        return True

    async def send_client_reminder_sms(self, booking: ReminderBooking, host: ReminderHost) -> bool:
        if not booking.client_phone or not self._sms_allowed(host):
            return False
        return await self.sms.send(booking.client_phone, client_reminder_sms_text(booking, host))

    async def send_host_reminder_sms(self, booking: ReminderBooking, host: ReminderHost) -> bool:
        if not host.sms_phone or not self._sms_allowed(host):
            return False
        return await self.sms.send(host.sms_phone, host_reminder_sms_text(booking, host))
