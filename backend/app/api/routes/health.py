from fastapi import APIRouter, Request

router = APIRouter()

@router.get("/")
def health(request: Request):
    """Liveness plus the outcome of the most recent reminder sweep."""
    scheduler = getattr(request.app.state, "reminder_scheduler", None)
    reminders: dict = {"enabled": False}
    if scheduler is not None:
        report = scheduler.last_report
        reminders = {
            "enabled": not scheduler.disabled,
            "started": scheduler.started,
            "running": scheduler.is_running,
            "last_sweep": report.model_dump(exclude={"results"}, mode="json") if report else None,
        }
    return {"status": "ok", "reminders": reminders}
