import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from config import settings
from models.schema import (
    EmployeeHistory,
    MonthlySummary,
    PunchEvent,
    PunchKind,
    TimeEntry,
    TimeEntryView,
    TransitionResult,
)
from utils.helper import (
    display_name,
    format_day,
    format_location,
    format_time,
    get_entries_between,
    get_last_punch,
    get_recent_entries,
    get_timezone,
    insert_time_entry,
    to_local,
    today_range,
)

MS_PER_HOUR = 60 * 60 * 1000
UNKNOWN_LABEL = "Unknown"
LOCATION_REQUIRED = (
    "Não foi possível acessar sua localização. "
    "Sem isso, não conseguimos validar o registro de ponto."
)

PUNCH_LABELS = {
    PunchKind.IN: "Entrada",
    PunchKind.START_BREAK: "Intervalo",
    PunchKind.OUT: "Saída",
    PunchKind.END_BREAK: "Retorno do intervalo",
}

# last punch of the day -> kinds that may follow it
ALLOWED_TRANSITIONS = {
    None: {PunchKind.IN},
    PunchKind.IN: {PunchKind.START_BREAK, PunchKind.OUT},
    PunchKind.START_BREAK: {PunchKind.END_BREAK},
    PunchKind.END_BREAK: {PunchKind.START_BREAK, PunchKind.OUT},
    PunchKind.OUT: {PunchKind.IN},
}

REJECTION_REASONS = {
    None: "Você precisa registrar uma entrada primeiro.",
    PunchKind.IN: "Após a entrada, registre intervalo ou saída.",
    PunchKind.START_BREAK: "Você já iniciou o intervalo. Registre o retorno do intervalo.",
    PunchKind.END_BREAK: "Após o retorno do intervalo, registre novo intervalo ou saída.",
    PunchKind.OUT: "Após a saída, o próximo registro deve ser uma nova entrada.",
}


def label_for(kind: Union[PunchKind, str, None]) -> str:
    try:
        return PUNCH_LABELS[PunchKind(kind)]
    except ValueError:
        return UNKNOWN_LABEL


def is_valid_transition(last_kind: Optional[PunchKind], next_kind: PunchKind) -> TransitionResult:
    """Live guard for a punch about to be recorded.

    ``last_kind`` is the most recent punch of the current day, or ``None``
    when nothing was recorded yet.
    """
    if last_kind is not None:
        last_kind = PunchKind(last_kind)
    if PunchKind(next_kind) in ALLOWED_TRANSITIONS[last_kind]:
        return TransitionResult(ok=True)
    return TransitionResult(ok=False, reason=REJECTION_REASONS[last_kind])


def parse_punch_records(rows: Iterable[Mapping]) -> List[PunchEvent]:
    """Turn raw ``{type|kind, timestamp}`` records into punch events.

    Records with an unknown kind or a bad timestamp are skipped.
    """
    events = []
    for row in rows:
        kind = row.get("kind", row.get("type"))
        try:
            events.append(PunchEvent(kind=kind, timestamp=row.get("timestamp")))
        except ValidationError:
            logging.warning(f"Skipping malformed punch record: kind={kind!r} timestamp={row.get('timestamp')!r}")
    return events


def calculate_day_worked_ms(events: Iterable[PunchEvent]) -> int:
    """Replay one day's punches and return the worked milliseconds.

    Malformed sequences never fail: only spans opened by ``in`` or
    ``end-break`` and closed by ``start-break`` or ``out`` are counted.
    """
    state = "off"
    last_ts = None
    worked = timedelta(0)

    for event in sorted(events, key=lambda e: e.timestamp):
        now = event.timestamp
        if event.kind == PunchKind.IN:
            state = "working"
            last_ts = now
        elif event.kind == PunchKind.START_BREAK:
            if state == "working" and last_ts is not None:
                worked += now - last_ts
            state = "break"
            last_ts = now
        elif event.kind == PunchKind.END_BREAK:
            if state == "break":
                state = "working"
                last_ts = now
        elif event.kind == PunchKind.OUT:
            if state == "working" and last_ts is not None:
                worked += now - last_ts
            state = "off"
            last_ts = now

    return worked // timedelta(milliseconds=1)


def compute_monthly_summary(events: Iterable[PunchEvent], reference: Optional[datetime] = None,
                            tz=None) -> MonthlySummary:
    tz = tz or get_timezone()
    reference = to_local(reference, tz) if reference is not None else datetime.now(tz)

    by_day: Dict = {}
    for event in events:
        local = to_local(event.timestamp, tz)
        if (local.year, local.month) != (reference.year, reference.month):
            continue
        by_day.setdefault(local.date(), []).append(PunchEvent(kind=event.kind, timestamp=local))

    total_worked_ms = sum(calculate_day_worked_ms(day_events) for day_events in by_day.values())
    work_days = len(by_day)
    expected_ms = work_days * settings.expected_daily_hours * MS_PER_HOUR

    return MonthlySummary(
        total_worked_ms=total_worked_ms,
        expected_ms=expected_ms,
        balance_ms=total_worked_ms - expected_ms,
        work_days=work_days,
    )


def format_duration_hms(ms: int) -> str:
    sign = "-" if ms < 0 else ""
    total_seconds = abs(int(ms)) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def check_punch(user_id: str, kind: PunchKind, timestamp: datetime,
                latitude: Optional[float] = None, longitude: Optional[float] = None, tz=None) -> TransitionResult:
    tz = tz or get_timezone()
    if settings.require_location and (latitude is None or longitude is None):
        logging.warning(f"Punch without location rejected for user_id: {user_id}")
        return TransitionResult(ok=False, reason=LOCATION_REQUIRED)

    last_punch = get_last_punch(user_id, to_local(timestamp, tz).date(), tz)
    result = is_valid_transition(last_punch.kind if last_punch else None, kind)
    if not result.ok:
        logging.warning(f"Invalid punch sequence for user_id: {user_id}: {result.reason}")
    return result


def record_punch(user_id: str, kind: PunchKind, timestamp: datetime,
                 latitude: Optional[float] = None, longitude: Optional[float] = None) -> TimeEntry:
    entry = insert_time_entry(user_id, kind, timestamp, latitude, longitude)
    logging.info(f"Punch '{entry.kind.value}' recorded for user_id: {user_id} (entry {entry.id})")
    return entry


def process_punch(user_id: str, kind: PunchKind, latitude: Optional[float] = None,
                  longitude: Optional[float] = None, timestamp: Optional[datetime] = None,
                  tz=None) -> Tuple[TransitionResult, Optional[TimeEntry]]:
    tz = tz or get_timezone()
    timestamp = timestamp or datetime.now(tz)
    result = check_punch(user_id, kind, timestamp, latitude, longitude, tz)
    if not result.ok:
        return result, None
    return result, record_punch(user_id, kind, timestamp, latitude, longitude)


def to_view(entry: TimeEntry, tz=None) -> TimeEntryView:
    return TimeEntryView(
        id=entry.id,
        kind=entry.kind,
        label=label_for(entry.kind),
        day=format_day(entry.timestamp, tz),
        time=format_time(entry.timestamp, tz),
        location=format_location(entry.latitude, entry.longitude),
    )


def today_entries(user_id: str, now: Optional[datetime] = None, tz=None) -> List[TimeEntry]:
    tz = tz or get_timezone()
    start_of_day, end_of_day = today_range(now or datetime.now(tz), tz)
    return get_entries_between(user_id, start_of_day, end_of_day, tz)


def build_employee_history(user_id: str, reference: Optional[datetime] = None, tz=None) -> EmployeeHistory:
    tz = tz or get_timezone()
    entries = get_recent_entries(user_id, tz=tz)
    events = [PunchEvent(kind=e.kind, timestamp=e.timestamp) for e in entries]

    return EmployeeHistory(
        user_id=user_id,
        name=display_name(user_id),
        entries=[to_view(e, tz) for e in entries],
        summary=compute_monthly_summary(events, reference, tz),
    )
