import os

# Settings are read at import time; the app must never talk to a real database or transport in tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")
os.environ["DISABLE_REMINDER_JOBS"] = "true"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["SEMAPHORE_API_KEY"] = ""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.models.base import Base
from app.models.booking import Booking
from app.models.user import User
from app.services.booking_store import BookingStore


@pytest.fixture
def engine(tmp_path):
    # File-backed so store calls from worker threads get their own connections
    eng = create_engine(f"sqlite:///{tmp_path / 'bookings.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def store(session_factory):
    return BookingStore(session_factory)


def add_host(db, email="host@example.com", username="host", timezone="Asia/Manila", **kwargs):
    host = User(email=email, username=username, full_name=kwargs.pop("full_name", "Host Person"), timezone=timezone, **kwargs)
    db.add(host)
    db.commit()
    db.refresh(host)
    return host


def add_booking(db, host, day=date(2025, 12, 9), start_time="14:00", end_time="15:00", **kwargs):
    kwargs.setdefault("client_name", "Client Person")
    kwargs.setdefault("client_email", "client@example.com")
    b = Booking(user_id=host.id, date=day, start_time=start_time, end_time=end_time, **kwargs)
    db.add(b)
    db.commit()
    db.refresh(b)
    return b
