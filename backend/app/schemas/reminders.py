from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from app.utils.timezone import format_time_12h, normalize_time

class ReminderHost(BaseModel):
    id: int
    email: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None  # display name used in message bodies
    full_name: Optional[str] = None
    meeting_link: Optional[str] = None
    sms_phone: Optional[str] = None
    timezone: Optional[str] = None
    is_pro: bool = False
    pro_expires_at: Optional[datetime] = None

class ReminderBooking(BaseModel):
    id: int
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    date: date
    start_time: str
    end_time: str
    notes: Optional[str] = None
    confirmation_uuid: Optional[str] = None

    @property
    def date_str(self) -> str:
        return self.date.isoformat()

    @property
    def formatted_start_time(self) -> str:
        return format_time_12h(normalize_time(self.start_time))

    @property
    def formatted_end_time(self) -> str:
        return format_time_12h(normalize_time(self.end_time))

class ReminderCandidate(BaseModel):
    """A booking row joined with its host, plus the stored sent-flags."""
    booking: ReminderBooking
    host: ReminderHost
    client_reminder_sent: bool = False
    host_reminder_sent: bool = False

CandidateStatus = Literal["sent", "skipped", "failed"]

class CandidateResult(BaseModel):
    booking_id: int
    status: CandidateStatus
    # skipped: invalid_datetime | outside_window | already_sent | no_recipient
    # failed: dispatch_failed | store_failed | error
    reason: Optional[str] = None
    client_email_sent: bool = False
    host_email_sent: bool = False
    client_sms_sent: bool = False
    host_sms_sent: bool = False
    errors: list[str] = Field(default_factory=list)

class SweepReport(BaseModel):
    started_at: datetime
    finished_at: Optional[datetime] = None
    candidates: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    # set when the whole tick aborted (store unavailable)
    error: Optional[str] = None
    results: list[CandidateResult] = Field(default_factory=list)

    def add(self, result: CandidateResult) -> None:
        self.results.append(result)
        if result.status == "sent":
            self.sent += 1
        elif result.status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
