import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException

from config import settings
from main import (
    PUNCH_LABELS,
    build_employee_history,
    check_punch,
    compute_monthly_summary,
    format_duration_hms,
    record_punch,
    to_view,
    today_entries,
)
from models.schema import PunchEvent, PunchRequest
from utils.helper import get_recent_entries, get_timezone

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

app = FastAPI(title=settings.app_name)


@app.get("/punch-kinds")
def list_punch_kinds():
    return [{"kind": kind.value, "label": label} for kind, label in PUNCH_LABELS.items()]


@app.post("/punch", status_code=202)
def receive_punch(punch: PunchRequest, background_tasks: BackgroundTasks):
    tz = get_timezone()
    timestamp = punch.timestamp or datetime.now(tz)
    result = check_punch(punch.user_id, punch.kind, timestamp, punch.latitude, punch.longitude, tz)
    if not result.ok:
        raise HTTPException(status_code=409, detail=result.reason)

    background_tasks.add_task(record_punch, punch.user_id, punch.kind, timestamp, punch.latitude, punch.longitude)
    return {
        "status": "Punch received, recording in background.",
        "type": punch.kind.value,
        "timestamp": timestamp.isoformat(),
    }


@app.get("/employees/{user_id}/entries/today")
def list_today_entries(user_id: str):
    tz = get_timezone()
    return [to_view(e, tz) for e in today_entries(user_id, tz=tz)]


@app.get("/employees/{user_id}/history")
def employee_history(user_id: str, reference: Optional[datetime] = None):
    return build_employee_history(user_id, reference)


@app.get("/employees/{user_id}/summary")
def employee_summary(user_id: str, reference: Optional[datetime] = None):
    events = [PunchEvent(kind=e.kind, timestamp=e.timestamp) for e in get_recent_entries(user_id)]
    summary = compute_monthly_summary(events, reference)
    logging.info(f"Monthly summary for user_id: {user_id}: {summary.work_days} day(s), balance {summary.balance_ms} ms")
    return {
        **summary.model_dump(),
        "total": format_duration_hms(summary.total_worked_ms),
        "expected": format_duration_hms(summary.expected_ms),
        "balance": format_duration_hms(summary.balance_ms),
    }
