from datetime import datetime, timedelta, timezone
from typing import Optional

# Expired subscriptions keep Pro features for one extra day
GRACE_PERIOD = timedelta(days=1)

def is_pro_active(is_pro: bool | None, pro_expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Pro gate for paid features (SMS reminders).

    A Pro flag without an expiry is a lifetime (admin-granted) subscription.
    """
    if not is_pro:
        return False
    if pro_expires_at is None:
        return True
    now = now or datetime.now(tz=timezone.utc)
    if pro_expires_at.tzinfo is None:
        pro_expires_at = pro_expires_at.replace(tzinfo=timezone.utc)
    return now <= pro_expires_at + GRACE_PERIOD
