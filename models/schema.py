from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PunchKind(str, Enum):
    IN = "in"
    START_BREAK = "start-break"
    END_BREAK = "end-break"
    OUT = "out"


class PunchEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: PunchKind
    timestamp: datetime


class TimeEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    user_id: str
    kind: PunchKind = Field(alias="type")
    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PunchRequest(BaseModel):
    user_id: str
    kind: PunchKind = Field(alias="type")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True)


class TransitionResult(BaseModel):
    ok: bool
    reason: Optional[str] = None


class MonthlySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_worked_ms: int = 0
    expected_ms: int = 0
    balance_ms: int = 0
    work_days: int = 0


class TimeEntryView(BaseModel):
    id: int
    kind: PunchKind
    label: str
    day: str
    time: str
    location: str


class EmployeeHistory(BaseModel):
    user_id: str
    name: str
    entries: List[TimeEntryView]
    summary: MonthlySummary
