from sqlalchemy import String, Boolean, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from app.models.base import Base

class User(Base):
    """Booking host. The reminder engine only reads these rows."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meeting_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    sms_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # IANA zone, e.g. "Asia/Manila". NULL -> app default
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_pro: Mapped[bool] = mapped_column(Boolean, default=False)
    # NULL with is_pro = lifetime (admin granted)
    pro_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
