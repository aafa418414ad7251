import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy import false, func, inspect, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.user import User
from app.schemas.reminders import ReminderBooking, ReminderCandidate, ReminderHost

logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 1
LOOKAHEAD_DAYS = 30
REMINDER_COLUMNS = ("client_reminder_sent", "host_reminder_sent")


class BookingStore:
    """Reads reminder candidates and persists sent-flags.

    Older databases may lack the sent-flag columns; the store then reports every
    flag as False and only touches ``updated_at`` when asked to mark a reminder.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        # Schema does not change at runtime; cached after the first successful inspection
        self._reminder_columns: bool | None = None

    def reminder_columns_exist(self) -> bool:
        if self._reminder_columns is not None:
            return self._reminder_columns
        try:
            with self._session_factory() as db:
                columns = {c["name"] for c in inspect(db.connection()).get_columns(Booking.__tablename__)}
            exists = all(name in columns for name in REMINDER_COLUMNS)
        except SQLAlchemyError as e:
            logger.warning("Could not inspect %s columns, assuming no reminder flags this time: %s", Booking.__tablename__, e)
            return False
        if not exists:
            logger.info("Reminder flag columns missing on %s; every in-range booking is treated as not yet reminded", Booking.__tablename__)
        self._reminder_columns = exists
        return exists

    def fetch_candidate_bookings(self, now: datetime) -> list[ReminderCandidate]:
        today = now.astimezone(timezone.utc).date()
        range_start = today - timedelta(days=LOOKBACK_DAYS)
        range_end = today + timedelta(days=LOOKAHEAD_DAYS)
        has_flags = self.reminder_columns_exist()

        columns = [
            Booking.id,
            Booking.user_id,
            Booking.client_name,
            Booking.client_email,
            Booking.client_phone,
            Booking.date,
            Booking.start_time,
            Booking.end_time,
            Booking.notes,
            Booking.confirmation_uuid,
            User.email.label("host_email"),
            User.username,
            User.full_name,
            User.display_name,
            User.meeting_link,
            User.sms_phone,
            User.timezone,
            User.is_pro,
            User.pro_expires_at,
        ]
        if has_flags:
            client_flag = func.coalesce(Booking.client_reminder_sent, false())
            host_flag = func.coalesce(Booking.host_reminder_sent, false())
            columns += [client_flag.label("client_reminder_sent"), host_flag.label("host_reminder_sent")]

        stmt = (
            select(*columns)
            .join(User, User.id == Booking.user_id)
            .where(
                Booking.status != "cancelled",
                Booking.date >= range_start,
                Booking.date <= range_end,
            )
            .order_by(Booking.date, Booking.start_time)
        )
        if has_flags:
            # Fully reminded bookings have nothing left to do
            stmt = stmt.where(or_(client_flag == false(), host_flag == false()))

        with self._session_factory() as db:
            rows = db.execute(stmt).all()
        return [self._to_candidate(row, has_flags) for row in rows]

    def _to_candidate(self, row, has_flags: bool) -> ReminderCandidate:
        booking = ReminderBooking(
            id=row.id,
            client_name=row.client_name,
            client_email=row.client_email,
            client_phone=row.client_phone,
            date=row.date,
            start_time=row.start_time or "",
            end_time=row.end_time or "",
            notes=row.notes,
            confirmation_uuid=row.confirmation_uuid,
        )
        host = ReminderHost(
            id=row.user_id,
            email=row.host_email,
            username=row.username,
            name=row.display_name or row.full_name or row.username,
            full_name=row.full_name,
            meeting_link=row.meeting_link,
            sms_phone=row.sms_phone,
            timezone=row.timezone,
            is_pro=bool(row.is_pro),
            pro_expires_at=row.pro_expires_at,
        )
        return ReminderCandidate(
            booking=booking,
            host=host,
            client_reminder_sent=bool(row.client_reminder_sent) if has_flags else False,
            host_reminder_sent=bool(row.host_reminder_sent) if has_flags else False,
        )

    def mark_reminder_sent(self, booking_id: int, client_sent: bool, host_sent: bool) -> None:
        """Persist sent-flags with OR semantics: a False argument never clears a stored True."""
        values: dict = {Booking.updated_at: func.now()}
        if self.reminder_columns_exist():
            if client_sent:
                values[Booking.client_reminder_sent] = True
            if host_sent:
                values[Booking.host_reminder_sent] = True
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        with self._session_factory() as db:
            db.execute(stmt)
            db.commit()
