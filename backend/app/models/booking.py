from sqlalchemy import String, Integer, ForeignKey, DateTime, Boolean, Date, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column
import datetime

from app.models.base import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    client_name: Mapped[str] = mapped_column(String(255))
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # Civil date/time in the host's timezone; no zone is stored with them
    date: Mapped[datetime.date] = mapped_column(Date, index=True)
    start_time: Mapped[str] = mapped_column(String(8))  # "HH:MM"
    end_time: Mapped[str] = mapped_column(String(8))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="confirmed")  # pending | confirmed | cancelled
    confirmation_uuid: Mapped[str | None] = mapped_column(String(36), nullable=True, unique=True)
    # 30-minute reminder markers, flipped false -> true once
    client_reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    host_reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
