from app.db.session import engine
from app.models import user  # noqa: F401
from app.models import booking  # noqa: F401
from app.models.base import Base

def create_tables():
    Base.metadata.create_all(bind=engine)
    # Lightweight migration for databases created before the reminder flags existed.
    # Use a transaction so DDL is committed on Postgres
    try:
        with engine.begin() as conn:
            conn.exec_driver_sql(
                "ALTER TABLE IF EXISTS bookings ADD COLUMN IF NOT EXISTS client_reminder_sent BOOLEAN NOT NULL DEFAULT false"
            )
            conn.exec_driver_sql(
                "ALTER TABLE IF EXISTS bookings ADD COLUMN IF NOT EXISTS host_reminder_sent BOOLEAN NOT NULL DEFAULT false"
            )
    except Exception as e:
        # Best-effort; the reminder engine still works without the columns
        print(f"[init-db] Could not ensure reminder columns: {e}")
