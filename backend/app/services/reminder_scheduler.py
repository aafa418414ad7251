"""30-minute booking reminders.

A sweep runs once at startup and then every SCAN_INTERVAL_SECONDS. Each sweep
loads the upcoming bookings, converts their civil start time in the host's
timezone to UTC and sends reminders for the ones starting within
WINDOW_MINUTES of REMINDER_MINUTES_BEFORE from now. Sent-flags on the booking
row suppress repeats; a failed send is retried by the next sweep while the
booking is still inside the window.

Only one sweep runs at a time per process. With several replicas each one runs
its own loop, so a shared lock (e.g. a Postgres advisory lock) is needed before
scaling out.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from app.core.config import settings
from app.schemas.reminders import CandidateResult, ReminderCandidate, SweepReport
from app.services.booking_store import BookingStore
from app.services.notifications import ReminderNotifier
from app.utils.timezone import get_user_timezone, local_to_utc

logger = logging.getLogger(__name__)

REMINDER_MINUTES_BEFORE = 30
WINDOW_MINUTES = 2
SCAN_INTERVAL_SECONDS = 60
DISPATCH_TIMEOUT_SECONDS = 10.0
MAX_CONCURRENCY = 10


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def reminder_window(now: datetime) -> tuple[datetime, datetime]:
    """Inclusive [start, end] range a booking start must fall in to be reminded at ``now``."""
    return (
        now + timedelta(minutes=REMINDER_MINUTES_BEFORE - WINDOW_MINUTES),
        now + timedelta(minutes=REMINDER_MINUTES_BEFORE + WINDOW_MINUTES),
    )


def in_reminder_window(start_utc: datetime, now: datetime) -> bool:
    window_start, window_end = reminder_window(now)
    return window_start <= start_utc <= window_end


def booking_start_utc(candidate: ReminderCandidate) -> datetime | None:
    tz_name = get_user_timezone(candidate.host.timezone)
    return local_to_utc(candidate.booking.date_str, candidate.booking.start_time, tz_name)


class ReminderScheduler:
    def __init__(
        self,
        store: BookingStore,
        notifier: ReminderNotifier,
        clock: Callable[[], datetime] = _utcnow,
        interval_seconds: float = SCAN_INTERVAL_SECONDS,
        dispatch_timeout: float = DISPATCH_TIMEOUT_SECONDS,
        max_concurrency: int = MAX_CONCURRENCY,
        disabled: bool | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.dispatch_timeout = dispatch_timeout
        self.max_concurrency = max_concurrency
        self.disabled = settings.disable_reminder_jobs if disabled is None else disabled
        self.last_report: SweepReport | None = None
        self._running = False
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def started(self) -> bool:
        return self._task is not None and not self._task.done()

    # --- lifecycle -------------------------------------------------------

    def start(self) -> None:
        if self.disabled:
            logger.info("Reminder jobs disabled (DISABLE_REMINDER_JOBS)")
            return
        if self.started:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(self._stop_event), name="reminder-sweep")
        logger.info("Reminder scheduler started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        task, stop_event = self._task, self._stop_event
        self._task = None
        self._stop_event = None
        if task is None:
            return
        if stop_event is not None:
            stop_event.set()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("Reminder scheduler stopped")

    async def _loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await self.run_sweep()
            except Exception:
                # run_sweep handles its own errors; the loop must survive anything else too
                logger.exception("Reminder sweep crashed")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

    # --- sweep -----------------------------------------------------------

    async def run_sweep(self) -> SweepReport | None:
        """Run one sweep. Returns None without doing anything if a sweep is already running."""
        if self._running:
            logger.debug("Reminder sweep already running, skipping tick")
            return None
        self._running = True
        report: SweepReport | None = None
        try:
            now = self.clock()
            report = SweepReport(started_at=now)
            try:
                candidates = await asyncio.to_thread(self.store.fetch_candidate_bookings, now)
            except Exception as e:
                logger.exception("Reminder sweep aborted: could not load bookings")
                report.error = f"fetch_failed: {e}"
                return report
            report.candidates = len(candidates)
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def bounded(candidate: ReminderCandidate) -> CandidateResult:
                async with semaphore:
                    return await self.process_candidate(candidate, now)

            results = await asyncio.gather(*(bounded(c) for c in candidates), return_exceptions=True)
            for candidate, result in zip(candidates, results):
                if isinstance(result, BaseException):
                    logger.error("Reminder processing failed for booking %s: %r", candidate.booking.id, result)
                    result = CandidateResult(booking_id=candidate.booking.id, status="failed", reason="error", errors=[repr(result)])
                report.add(result)
            return report
        finally:
            self._running = False
            if report is not None:
                self.last_report = report
                report.finished_at = self.clock()
                self._log_report(report)

    async def process_candidate(self, candidate: ReminderCandidate, now: datetime) -> CandidateResult:
        booking, host = candidate.booking, candidate.host
        result = CandidateResult(booking_id=booking.id, status="skipped")

        start_utc = booking_start_utc(candidate)
        if start_utc is None:
            logger.debug("Booking %s has unparseable date/time %r %r", booking.id, booking.date_str, booking.start_time)
            result.reason = "invalid_datetime"
            return result
        if not in_reminder_window(start_utc, now):
            result.reason = "outside_window"
            return result

        client_due = not candidate.client_reminder_sent and bool(booking.client_email)
        host_due = not candidate.host_reminder_sent and bool(host.email)
        if not client_due and not host_due:
            both_sent = candidate.client_reminder_sent and candidate.host_reminder_sent
            result.reason = "already_sent" if both_sent else "no_recipient"
            return result

        if client_due:
            result.client_email_sent = await self._dispatch(
                "client email", self.notifier.send_client_reminder_email, candidate, result
            )
        if host_due:
            result.host_email_sent = await self._dispatch(
                "host email", self.notifier.send_host_reminder_email, candidate, result
            )

        # SMS only goes out together with an email sent in this same pass
        if result.client_email_sent and booking.client_phone:
            result.client_sms_sent = await self._dispatch(
                "client sms", self.notifier.send_client_reminder_sms, candidate, result
            )
        if result.host_email_sent and host.sms_phone:
            result.host_sms_sent = await self._dispatch(
                "host sms", self.notifier.send_host_reminder_sms, candidate, result
            )

        if not (result.client_email_sent or result.host_email_sent):
            result.status = "failed"
            result.reason = "dispatch_failed"
            return result

        try:
            await asyncio.to_thread(
                self.store.mark_reminder_sent,
                booking.id,
                candidate.client_reminder_sent or result.client_email_sent,
                candidate.host_reminder_sent or result.host_email_sent,
            )
        except Exception as e:
            logger.exception("Could not persist reminder flags for booking %s", booking.id)
            result.status = "failed"
            result.reason = "store_failed"
            result.errors.append(f"mark_reminder_sent: {e}")
            return result

        result.status = "sent"
        return result

    async def _dispatch(
        self,
        label: str,
        send: Callable[..., Awaitable[bool | None]],
        candidate: ReminderCandidate,
        result: CandidateResult,
    ) -> bool:
        try:
            outcome = await asyncio.wait_for(send(candidate.booking, candidate.host), timeout=self.dispatch_timeout)
            # An explicit False is a deliberate skip (e.g. SMS for a non-Pro host), not an error
            if outcome is False:
                logger.debug("Reminder %s for booking %s not sent", label, candidate.booking.id)
                return False
            return True
        except asyncio.TimeoutError:
            logger.warning("Reminder %s for booking %s timed out after %ss", label, candidate.booking.id, self.dispatch_timeout)
            result.errors.append(f"{label}: timeout")
        except Exception as e:
            logger.warning("Reminder %s for booking %s failed: %s", label, candidate.booking.id, e)
            result.errors.append(f"{label}: {e}")
        return False

    def _log_report(self, report: SweepReport) -> None:
        if report.error:
            return
        if report.sent or report.failed:
            logger.info(
                "Reminder sweep: %d candidates, %d sent, %d failed, %d skipped",
                report.candidates, report.sent, report.failed, report.skipped,
            )
        else:
            logger.debug("Reminder sweep: %d candidates, nothing due", report.candidates)
