"""
Attendance Schemas for workdays, mini-breaks, incidents and transition results
"""
import re
from typing import Optional, Literal
from datetime import datetime, date, time
from pydantic import BaseModel, ConfigDict, field_validator

StatusLiteral = Literal["normal", "manual", "auto"]


def _fix_timezone_suffix(v):
    """
    Fix datetime timezone format from PostgreSQL
    PostgreSQL returns: '2025-10-01 09:17:39.587802+00'
    Pydantic expects: '2025-10-01 09:17:39.587802+00:00'
    """
    if v == '' or v is None:
        return None

    if isinstance(v, str):
        match = re.search(r'([+-]\d{2})$', v)
        if match:
            v = v + ':00'

    return v


class WorkdayBase(BaseModel):
    wd_employee_id: int
    wd_day_date: date
    wd_checkin_at: Optional[datetime] = None
    wd_checkin_status: Optional[StatusLiteral] = None
    wd_checkout_at: Optional[datetime] = None
    wd_checkout_status: Optional[StatusLiteral] = None
    wd_lunch_start: Optional[datetime] = None
    wd_lunch_end: Optional[datetime] = None
    wd_lunch_status: Optional[StatusLiteral] = None
    wd_late_minutes: int = 0
    wd_break_total_minutes: int = 0
    wd_compensation_minutes: int = 0
    wd_compensation_work_minutes: int = 0
    wd_scheduled_start: time = time(9, 0, 0)
    wd_scheduled_end: time = time(17, 0, 0)


class Workday(WorkdayBase):
    model_config = ConfigDict(from_attributes=True)

    wd_id: int
    wd_created_at: Optional[datetime] = None
    wd_updated_at: Optional[datetime] = None

    @field_validator('wd_created_at', 'wd_updated_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return _fix_timezone_suffix(v)


class WorkdayUpdate(BaseModel):
    """
    Partial workday update

    Only fields explicitly set are written; the repository applies
    model_dump(exclude_unset=True) to the row.
    """
    wd_checkin_at: Optional[datetime] = None
    wd_checkin_status: Optional[StatusLiteral] = None
    wd_checkout_at: Optional[datetime] = None
    wd_checkout_status: Optional[StatusLiteral] = None
    wd_lunch_start: Optional[datetime] = None
    wd_lunch_end: Optional[datetime] = None
    wd_lunch_status: Optional[StatusLiteral] = None
    wd_late_minutes: Optional[int] = None
    wd_break_total_minutes: Optional[int] = None
    wd_compensation_minutes: Optional[int] = None
    wd_compensation_work_minutes: Optional[int] = None


class MiniBreak(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mb_id: int
    mb_workday_id: int
    mb_employee_id: int
    mb_start_at: datetime
    mb_end_at: Optional[datetime] = None
    mb_duration_minutes: Optional[int] = None
    mb_exceeded_minutes: Optional[int] = None
    mb_status: StatusLiteral = "normal"


class Incident(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    in_id: int
    in_workday_id: int
    in_employee_id: int
    in_code: str
    in_message: str
    in_severity: Literal["info", "warn"]
    in_occurred_at: datetime
    in_notify_after: datetime
    in_notified_at: Optional[datetime] = None
    in_channel: str = "both"


# Rules engine results
class WorkdayTotals(BaseModel):
    break_total: int = 0
    exceeded_total: int = 0
    compensation: int = 0
    compensation_work: int = 0


class TransitionResult(BaseModel):
    """Outcome of a rules engine transition; ok=False carries the rejection"""
    ok: bool = True
    error: Optional[str] = None
    code: Optional[str] = None


class CheckinResult(TransitionResult):
    late_min: int = 0
    workday_id: Optional[int] = None
    notice: Optional[str] = None
    flex: bool = False


class CheckoutResult(TransitionResult):
    workday_id: Optional[int] = None
    flex: bool = False


class LunchResult(TransitionResult):
    workday_id: Optional[int] = None
    duration_min: Optional[int] = None


class MiniBreakStartResult(TransitionResult):
    mini_break_id: Optional[int] = None
    mini_count_before: int = 0
    phase: Optional[Literal["before_lunch", "after_lunch"]] = None
    notice: Optional[str] = None


class MiniBreakEndResult(TransitionResult):
    duration_min: int = 0
    exceeded_min: int = 0
    totals: Optional[WorkdayTotals] = None


# Request schemas for API endpoints
class CheckoutRequest(BaseModel):
    """Request schema for checkout endpoint"""
    manual_checkin_time: Optional[str] = None  # HH:MM or HH:MM:SS, required when no check-in exists
