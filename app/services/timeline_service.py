"""
Timeline Service - Day timelines, live overview and incident listings
"""
from datetime import date
from typing import List, Optional, Union
from sqlalchemy.orm import Session

from app.models.workday import Workday as WorkdayModel
from app.repositories.employee_repository import EmployeeRepository
from app.repositories.workday_repository import WorkdayRepository
from app.repositories.attendance_event_repository import AttendanceEventRepository
from app.repositories.mini_break_repository import MiniBreakRepository
from app.repositories.incident_repository import IncidentRepository
from app.schemas.attendance import Workday, MiniBreak, Incident
from app.schemas.timeline import (
    EmployeeBrief,
    TimelineEntry,
    DaySummary,
    DayTimeline,
    LiveEntry,
    LiveOverview,
)
from app.services.workday_state import WorkdayPhase, derive_state
from app.utils.time import clamp_min, minutes_between, parse_day, set_time_on_date
from atams.exceptions import NotFoundException

EVENT_LABELS = {
    "checkin": "Checked In",
    "checkout": "Checked Out",
    "lunch_start": "Lunch Break Start",
    "lunch_end": "Lunch Break End",
    "mini_break_start": "Mini Break Start",
    "mini_break_end": "Mini Break End",
}


def compute_worked_minutes(workday: Optional[WorkdayModel]) -> int:
    """Check-in to checkout span minus recorded breaks"""
    if workday is None or workday.wd_checkin_at is None or workday.wd_checkout_at is None:
        return 0
    gross = clamp_min(minutes_between(workday.wd_checkin_at, workday.wd_checkout_at))
    return clamp_min(gross - (workday.wd_break_total_minutes or 0))


def compute_overtime_minutes(workday: Optional[WorkdayModel], worked_minutes: int) -> int:
    if workday is None:
        return 0
    start = set_time_on_date(workday.wd_day_date, workday.wd_scheduled_start)
    end = set_time_on_date(workday.wd_day_date, workday.wd_scheduled_end)
    scheduled = clamp_min(minutes_between(start, end))
    return clamp_min(worked_minutes - scheduled)


class TimelineService:
    def __init__(self) -> None:
        self.employee_repo = EmployeeRepository()
        self.workday_repo = WorkdayRepository()
        self.event_repo = AttendanceEventRepository()
        self.mini_break_repo = MiniBreakRepository()
        self.incident_repo = IncidentRepository()

    def _get_employee(self, db: Session, employee_id: int):
        employee = self.employee_repo.get_by_id(db, employee_id)
        if not employee:
            raise NotFoundException("Employee not found")
        return employee

    def get_day_timeline(self, db: Session, employee_id: int, day: Union[str, date]) -> DayTimeline:
        """
        Get one employee's day: workday row, labelled events, incidents and summary

        Args:
            db: Database session
            employee_id: Employee ID
            day: Calendar day (YYYY-MM-DD or date)

        Returns:
            DayTimeline: empty timeline and zero summary when no workday exists

        Raises:
            NotFoundException: If employee not found
            ValidationError: If day is malformed
        """
        employee = self._get_employee(db, employee_id)
        target_day = parse_day(day)
        brief = EmployeeBrief.model_validate(employee)

        workday = self.workday_repo.get_by_employee_day(db, employee_id, target_day)
        if workday is None:
            return DayTimeline(employee=brief, day=target_day)

        timeline = [
            TimelineEntry(
                at=event.ae_occurred_at,
                type=event.ae_event_type,
                status=event.ae_status,
                label=EVENT_LABELS.get(event.ae_event_type, event.ae_event_type),
                meta=event.ae_meta
            )
            for event in self.event_repo.get_workday_events(db, workday.wd_id)
        ]

        mini_breaks = self.mini_break_repo.get_workday_breaks(db, workday.wd_id)

        worked = compute_worked_minutes(workday)
        summary = DaySummary(
            worked_minutes=worked,
            break_minutes=workday.wd_break_total_minutes or 0,
            overtime_minutes=compute_overtime_minutes(workday, worked),
            compensation_minutes=workday.wd_compensation_minutes or 0,
            compensation_work_minutes=workday.wd_compensation_work_minutes or 0,
            mini_break_count=len(mini_breaks)
        )

        incidents = [
            Incident.model_validate(i)
            for i in self.incident_repo.get_workday_incidents(db, workday.wd_id)
        ]

        return DayTimeline(
            employee=brief,
            day=target_day,
            workday=Workday.model_validate(workday),
            timeline=timeline,
            mini_breaks=[MiniBreak.model_validate(b) for b in mini_breaks],
            summary=summary,
            incidents=incidents
        )

    def get_live_overview(self, db: Session, day: Union[str, date]) -> LiveOverview:
        """Group active employees by where their day currently stands"""
        target_day = parse_day(day)
        employees = self.employee_repo.get_active_employees(db)
        workdays = {
            w.wd_employee_id: w
            for w in self.workday_repo.get_for_day(db, [e.em_id for e in employees], target_day)
        }
        open_break_days = self.mini_break_repo.get_workday_ids_with_open_break(
            db, [w.wd_id for w in workdays.values()]
        )

        overview = LiveOverview(day=target_day)
        for employee in employees:
            workday = workdays.get(employee.em_id)
            entry = LiveEntry(
                employee_id=employee.em_id,
                full_name=employee.em_full_name,
                flex=bool(employee.em_flex_mode),
                workday_id=workday.wd_id if workday else None,
                checkin_at=workday.wd_checkin_at if workday else None,
                checkout_at=workday.wd_checkout_at if workday else None,
                lunch_start=workday.wd_lunch_start if workday else None,
                lunch_end=workday.wd_lunch_end if workday else None
            )

            state = derive_state(workday, mini_break_open=workday is not None and workday.wd_id in open_break_days)
            if state.phase is WorkdayPhase.NOT_STARTED:
                overview.not_checked_in.append(entry)
            elif state.phase is WorkdayPhase.CHECKED_OUT:
                overview.checked_out.append(entry)
            elif state.phase is WorkdayPhase.ON_LUNCH:
                overview.lunch.append(entry)
            elif state.mini_break_open:
                overview.mini_break.append(entry)
            else:
                overview.active.append(entry)

        return overview

    def list_incidents(
        self,
        db: Session,
        employee_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        severity: Optional[str] = None
    ) -> List[Incident]:
        self._get_employee(db, employee_id)
        incidents = self.incident_repo.get_employee_incidents(
            db, employee_id, date_from=date_from, date_to=date_to, severity=severity
        )
        return [Incident.model_validate(i) for i in incidents]
