"""
Timeline Schemas for day summaries and the live overview
"""
from typing import Optional, List, Dict, Any
from datetime import datetime, date
from pydantic import BaseModel, ConfigDict

from app.schemas.attendance import Workday, MiniBreak, Incident


class EmployeeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    em_id: int
    em_full_name: str
    em_email: Optional[str] = None
    em_is_active: bool = True
    em_flex_mode: bool = False


class TimelineEntry(BaseModel):
    at: datetime
    type: str
    status: str
    label: str
    meta: Optional[Dict[str, Any]] = None


class DaySummary(BaseModel):
    worked_minutes: int = 0
    break_minutes: int = 0
    overtime_minutes: int = 0
    compensation_minutes: int = 0
    compensation_work_minutes: int = 0
    mini_break_count: int = 0


class DayTimeline(BaseModel):
    employee: EmployeeBrief
    day: date
    workday: Optional[Workday] = None
    timeline: List[TimelineEntry] = []
    mini_breaks: List[MiniBreak] = []
    summary: DaySummary = DaySummary()
    incidents: List[Incident] = []


class LiveEntry(BaseModel):
    employee_id: int
    full_name: str
    flex: bool = False
    workday_id: Optional[int] = None
    checkin_at: Optional[datetime] = None
    checkout_at: Optional[datetime] = None
    lunch_start: Optional[datetime] = None
    lunch_end: Optional[datetime] = None


class LiveOverview(BaseModel):
    day: date
    not_checked_in: List[LiveEntry] = []
    active: List[LiveEntry] = []
    lunch: List[LiveEntry] = []
    mini_break: List[LiveEntry] = []
    checked_out: List[LiveEntry] = []
