from contextlib import asynccontextmanager
import logging
import os
from pathlib import Path

import httpx
from fastapi import FastAPI

from app.api.router import api_router
from app.core.config import settings
from app.db.init_db import create_tables
from app.db.session import SessionLocal
from app.services.booking_store import BookingStore
from app.services.notifications import HTTP_TIMEOUT_SECONDS, ReminderDispatcher
from app.services.reminder_scheduler import ReminderScheduler

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

def _run_migrations_if_needed():
    """Apply Alembic migrations automatically in production if enabled.

    Controlled by env var AUTO_APPLY_MIGRATIONS (default: '1'). Safe to run repeatedly.
    """
    if settings.env.lower() != "prod":
        return
    if os.getenv("AUTO_APPLY_MIGRATIONS", "1") != "1":
        return
    try:
        from alembic import command  # type: ignore
        from alembic.config import Config  # type: ignore
        alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
        if not alembic_ini.exists():
            print(f"[migrate] alembic.ini not found at {alembic_ini}, skipping auto-migrations")
            return
        cfg = Config(str(alembic_ini))
        # Ensure script_location resolves correctly when launched from arbitrary CWD
        script_location = Path(__file__).resolve().parents[1] / "alembic"
        if script_location.exists():
            cfg.set_main_option("script_location", str(script_location))
        print("[migrate] Applying Alembic migrations -> head ...")
        command.upgrade(cfg, "head")
        print("[migrate] Migrations applied successfully")
    except Exception as e:  # pragma: no cover
        # Do not kill the app on migration failure; the reminder engine copes with a stale schema.
        print(f"[migrate] Migration failed: {e}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    _run_migrations_if_needed()
    if settings.env.lower() in {"dev", "development"}:
        create_tables()
    http_client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
    scheduler = ReminderScheduler(
        store=BookingStore(SessionLocal),
        notifier=ReminderDispatcher(settings, http_client),
    )
    app.state.reminder_scheduler = scheduler
    scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        await http_client.aclose()

app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.include_router(api_router)
