from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional
from pathlib import Path

class Settings(BaseSettings):
    app_name: str = Field(default="Booking Reminders API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    app_url: str = Field(default="https://isked.app", alias="APP_URL")
    # Turns ReminderScheduler.start() into a no-op (test/staging environments)
    disable_reminder_jobs: bool = Field(default=False, alias="DISABLE_REMINDER_JOBS")
    # Mailgun (email). Missing key or domain -> email sending disabled.
    mailgun_api_key: Optional[str] = Field(default=None, alias="MAILGUN_API_KEY")
    mailgun_domain: Optional[str] = Field(default=None, alias="MAILGUN_DOMAIN")
    mailgun_base_url: str = Field(default="https://api.mailgun.net", alias="MAILGUN_BASE_URL")
    # Semaphore (SMS). Missing key -> SMS sending disabled.
    semaphore_api_key: Optional[str] = Field(default=None, alias="SEMAPHORE_API_KEY")
    semaphore_sender: str = Field(default="ISKED", alias="SEMAPHORE_SENDER")
    semaphore_api_url: str = Field(default="https://api.semaphore.co/api/v4/messages", alias="SEMAPHORE_API_URL")

    class Config:
        # Load env from backend/.env regardless of CWD
        env_file = str(Path(__file__).resolve().parents[2] / ".env")
        case_sensitive = False
        extra = "ignore"

    @property
    def email_enabled(self) -> bool:
        return bool(self.mailgun_api_key and self.mailgun_domain)

    @property
    def sms_enabled(self) -> bool:
        return bool(self.semaphore_api_key)

settings = Settings()  # type: ignore
