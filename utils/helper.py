from datetime import date, datetime, time
from typing import List, Optional, Tuple

import pytz

from config import settings
from models.schema import TimeEntry

# Mock profile and time entry data stores
mock_profiles = [
    {
        "id": "u-1",
        "full_name": "Ana Souza",
        "work_email": "ana.souza@example.com",
    }
]

mock_time_entries: List[TimeEntry] = []

WEEKDAYS_PT = ["segunda-feira", "terça-feira", "quarta-feira", "quinta-feira", "sexta-feira", "sábado", "domingo"]
NO_LOCATION = "Sem localização"


def get_timezone(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.tz_default)


def to_local(dt: datetime, tz=None) -> datetime:
    """Naive datetimes are wall-clock time in ``tz``; aware ones get converted."""
    tz = tz or get_timezone()
    if dt.tzinfo is None:
        return tz.localize(dt)
    return dt.astimezone(tz)


def today_range(now: datetime, tz=None) -> Tuple[datetime, datetime]:
    tz = tz or get_timezone()
    day = to_local(now, tz).date()
    start_of_day = tz.localize(datetime.combine(day, time(0, 0, 0, 0)))
    end_of_day = tz.localize(datetime.combine(day, time(23, 59, 59, 999000)))
    return start_of_day, end_of_day


def get_profile(user_id: str) -> Optional[dict]:
    for profile in mock_profiles:
        if profile["id"] == user_id:
            return profile
    return None


def display_name(user_id: str) -> str:
    profile = get_profile(user_id)
    if profile:
        return profile.get("full_name") or profile.get("work_email") or "Colaborador"
    return "Colaborador"


def insert_time_entry(user_id: str, kind, timestamp: datetime,
                      latitude: Optional[float] = None, longitude: Optional[float] = None) -> TimeEntry:
    entry = TimeEntry(
        id=len(mock_time_entries) + 1,
        user_id=user_id,
        kind=kind,
        timestamp=timestamp,
        latitude=latitude,
        longitude=longitude,
    )
    mock_time_entries.append(entry)
    return entry


def get_entries_between(user_id: str, start: datetime, end: datetime, tz=None) -> List[TimeEntry]:
    """Entries of ``user_id`` with start <= timestamp <= end, newest first."""
    tz = tz or get_timezone()
    entries = [
        e for e in mock_time_entries
        if e.user_id == user_id and start <= to_local(e.timestamp, tz) <= end
    ]
    return sorted(entries, key=lambda e: to_local(e.timestamp, tz), reverse=True)


def get_last_punch(user_id: str, punch_date: date, tz=None) -> Optional[TimeEntry]:
    tz = tz or get_timezone()
    punches = [
        e for e in mock_time_entries
        if e.user_id == user_id and to_local(e.timestamp, tz).date() == punch_date
    ]
    if punches:
        return sorted(punches, key=lambda e: to_local(e.timestamp, tz), reverse=True)[0]
    return None


def get_recent_entries(user_id: str, limit: Optional[int] = None, tz=None) -> List[TimeEntry]:
    tz = tz or get_timezone()
    limit = settings.history_limit if limit is None else limit
    entries = sorted(
        [e for e in mock_time_entries if e.user_id == user_id],
        key=lambda e: to_local(e.timestamp, tz),
        reverse=True,
    )
    return entries[:limit]


def format_time(dt: datetime, tz=None) -> str:
    return to_local(dt, tz).strftime("%H:%M")


def format_day(dt: datetime, tz=None) -> str:
    return to_local(dt, tz).strftime("%d/%m/%Y")


def format_date(dt: datetime, tz=None) -> str:
    local = to_local(dt, tz)
    return f"{WEEKDAYS_PT[local.weekday()]}, {local.strftime('%d/%m/%Y')}"


def format_location(latitude: Optional[float], longitude: Optional[float]) -> str:
    if latitude is None or longitude is None:
        return NO_LOCATION
    return f"{latitude:.5f}, {longitude:.5f}"
