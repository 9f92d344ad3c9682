"""
Rules Service - Attendance state machine, compensation policy and incidents
"""
from datetime import date, datetime, timedelta
from functools import wraps
from typing import Optional, Union
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import StoreError, ValidationError
from app.core.rules import (
    AttendancePolicy,
    EventStatus,
    EventType,
    IncidentCode,
    MiniBreakPhase,
    RejectionCode,
    Severity,
)
from app.models.employee import Employee
from app.models.incident import Incident
from app.models.workday import Workday
from app.repositories.employee_repository import EmployeeRepository
from app.repositories.workday_repository import WorkdayRepository
from app.repositories.attendance_event_repository import AttendanceEventRepository
from app.repositories.mini_break_repository import MiniBreakRepository
from app.repositories.incident_repository import IncidentRepository
from app.schemas.attendance import (
    WorkdayUpdate,
    WorkdayTotals,
    CheckinResult,
    CheckoutResult,
    LunchResult,
    MiniBreakStartResult,
    MiniBreakEndResult,
)
from app.services.workday_state import WorkdayPhase, derive_state
from app.utils.time import (
    clamp_min,
    compute_notify_after,
    minutes_between,
    now_local,
    parse_day,
    parse_time_of_day,
    set_time_on_date,
    to_day,
    to_local_naive,
)
from atams.logging import get_logger
from atams.transaction import transaction

logger = get_logger(__name__)


def store_guarded(operation):
    """
    Run a transition as one unit of work.

    Everything the transition writes is committed together on success;
    a database failure rolls all of it back and is re-raised as StoreError.
    """
    @wraps(operation)
    def wrapper(self, db: Session, *args, **kwargs):
        try:
            with transaction(db):
                return operation(self, db, *args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error(
                f"Attendance store failure in {operation.__name__}: {str(exc)}",
                exc_info=True,
                extra={'extra_data': {'operation': operation.__name__, 'error_type': type(exc).__name__}}
            )
            raise StoreError(f"Attendance store failed during {operation.__name__}") from exc
    return wrapper


class RulesService:
    def __init__(self, policy: Optional[AttendancePolicy] = None) -> None:
        self.policy = policy or AttendancePolicy.from_settings(settings)
        self.employee_repo = EmployeeRepository()
        self.workday_repo = WorkdayRepository()
        self.event_repo = AttendanceEventRepository()
        self.mini_break_repo = MiniBreakRepository()
        self.incident_repo = IncidentRepository()

    # ==================== PROFILE ====================

    def is_exempt(self, employee: Optional[Employee]) -> bool:
        """Flex employees bypass lateness, ordering and break limits"""
        if not self.policy.flex_mode_supported or employee is None:
            return False
        return bool(employee.em_flex_mode)

    def is_flex(self, db: Session, employee_id: int) -> bool:
        """Unknown employees are handled as non-exempt"""
        return self.is_exempt(self.employee_repo.get_by_id(db, employee_id))

    # ==================== HELPERS ====================

    def _normalize(self, at: Optional[datetime], status: Union[str, EventStatus]) -> tuple[datetime, str]:
        at = now_local() if at is None else to_local_naive(at)
        try:
            status_value = EventStatus(status).value
        except ValueError:
            raise ValidationError(f"Invalid status: {status}")
        return at, status_value

    def late_minutes(self, checkin_at: datetime) -> int:
        cutoff = set_time_on_date(checkin_at.date(), self.policy.checkin_late_after)
        return clamp_min(minutes_between(cutoff, checkin_at))

    def notify_after(self, occurred_at: datetime) -> datetime:
        return compute_notify_after(occurred_at, self.policy.notify_hour)

    def _add_event(
        self,
        db: Session,
        workday: Workday,
        event_type: EventType,
        at: datetime,
        status: str,
        meta: Optional[dict] = None
    ) -> None:
        self.event_repo.create_event(db, {
            "ae_workday_id": workday.wd_id,
            "ae_employee_id": workday.wd_employee_id,
            "ae_event_type": event_type.value,
            "ae_occurred_at": at,
            "ae_status": status,
            "ae_meta": meta
        })

    def raise_incident(
        self,
        db: Session,
        workday: Workday,
        code: IncidentCode,
        message: str,
        occurred_at: datetime,
        notify_after: datetime,
        severity: Severity = Severity.WARN
    ) -> Optional[Incident]:
        """
        Record an incident once per (workday, code).

        Best effort: the insert runs in a savepoint, so a store failure here
        is logged and undone without losing the transition that triggered it.

        Returns:
            Incident row (new or existing), or None when recording failed
        """
        try:
            with db.begin_nested():
                incident, created = self.incident_repo.raise_incident(db, {
                    "in_workday_id": workday.wd_id,
                    "in_employee_id": workday.wd_employee_id,
                    "in_code": code.value,
                    "in_message": message,
                    "in_severity": severity.value,
                    "in_occurred_at": occurred_at,
                    "in_notify_after": notify_after
                })
        except SQLAlchemyError as exc:
            logger.warning(
                f"Failed to record incident {code.value} for workday {workday.wd_id}: {str(exc)}",
                exc_info=True
            )
            return None

        if created:
            logger.info(
                f"Incident {code.value} raised for employee {workday.wd_employee_id}",
                extra={'extra_data': {'workday_id': workday.wd_id, 'code': code.value}}
            )
        return incident

    def recalc_workday_totals(self, db: Session, workday: Workday, flex: bool) -> WorkdayTotals:
        """
        Recompute break and compensation aggregates from the stored components

        Idempotent; runs after every mutating transition.
        """
        lunch_min = 0
        if workday.wd_lunch_start and workday.wd_lunch_end:
            lunch_min = clamp_min(minutes_between(workday.wd_lunch_start, workday.wd_lunch_end))

        mini = self.mini_break_repo.get_workday_totals(db, workday.wd_id)
        break_total = lunch_min + mini["mb_minutes"]

        if flex:
            totals = WorkdayTotals(break_total=break_total)
        else:
            exceeded_total = clamp_min(break_total - self.policy.total_break_max_min)
            compensation = (workday.wd_late_minutes or 0) + mini["mb_exceeded"] + exceeded_total
            totals = WorkdayTotals(
                break_total=break_total,
                exceeded_total=exceeded_total,
                compensation=compensation,
                compensation_work=compensation * self.policy.comp_ratio
            )

        self.workday_repo.apply_update(db, workday, WorkdayUpdate(
            wd_break_total_minutes=totals.break_total,
            wd_compensation_minutes=totals.compensation,
            wd_compensation_work_minutes=totals.compensation_work
        ))
        return totals

    # ==================== TRANSITIONS ====================

    @store_guarded
    def check_in(
        self,
        db: Session,
        employee_id: int,
        at: Optional[datetime] = None,
        status: str = "normal"
    ) -> CheckinResult:
        at, status = self._normalize(at, status)
        day = to_day(at)
        flex = self.is_flex(db, employee_id)
        workday = self.workday_repo.get_by_employee_day(db, employee_id, day)

        if derive_state(workday).checked_in and not flex:
            logger.debug(f"Check-in rejected for employee {employee_id}: already checked in")
            return CheckinResult(
                ok=False,
                error="Already checked in today",
                code=RejectionCode.ALREADY_CHECKED_IN.value,
                flex=flex
            )

        late_min = 0 if flex else self.late_minutes(at)
        changes = WorkdayUpdate(wd_checkin_at=at, wd_checkin_status=status, wd_late_minutes=late_min)
        if workday is None:
            workday = self.workday_repo.create_for_day(
                db, employee_id, day, changes.model_dump(exclude_unset=True)
            )
        else:
            workday = self.workday_repo.apply_update(db, workday, changes)

        meta = {"flex": True} if flex else {"lateMin": late_min}
        self._add_event(db, workday, EventType.CHECKIN, at, status, meta)

        notice = None
        if not flex and late_min > 0:
            compensation = late_min * self.policy.comp_ratio
            self.raise_incident(
                db, workday, IncidentCode.LATE_CHECKIN,
                f"Late check-in: {late_min} min. Compensation: {compensation} min.",
                occurred_at=at,
                notify_after=at
            )
            notice = (
                f"You are {late_min} minutes late and must stay "
                f"{compensation} extra minutes after working hours."
            )

        self.recalc_workday_totals(db, workday, flex)
        logger.info(f"Employee {employee_id} checked in at {at:%H:%M} (late {late_min} min)")

        return CheckinResult(late_min=late_min, workday_id=workday.wd_id, notice=notice, flex=flex)

    def _checkin_for_checkout(
        self,
        db: Session,
        employee_id: int,
        day: date,
        workday: Optional[Workday],
        at: datetime,
        status: str,
        manual_time,
        flex: bool
    ) -> Workday:
        """Synthesize the missing check-in of a checkout, creating the workday if needed"""
        checkin_at = set_time_on_date(day, manual_time) if manual_time else at
        checkin_status = EventStatus.MANUAL.value if manual_time else status
        late_min = 0 if flex else self.late_minutes(checkin_at)

        changes = WorkdayUpdate(wd_checkin_at=checkin_at, wd_checkin_status=checkin_status, wd_late_minutes=late_min)
        if workday is None:
            workday = self.workday_repo.create_for_day(
                db, employee_id, day, changes.model_dump(exclude_unset=True)
            )
        else:
            workday = self.workday_repo.apply_update(db, workday, changes)

        if flex:
            meta = {"flex": True, "reason": "auto_created_for_checkout"}
        else:
            meta = {"reason": "checkout_without_checkin"}
        self._add_event(db, workday, EventType.CHECKIN, checkin_at, checkin_status, meta)

        if not flex:
            self.raise_incident(
                db, workday, IncidentCode.NO_CHECKIN_MANUAL_CHECKOUT,
                "Checkout without check-in. Manual check-in was added.",
                occurred_at=at,
                notify_after=self.notify_after(at)
            )
        return workday

    @store_guarded
    def check_out(
        self,
        db: Session,
        employee_id: int,
        at: Optional[datetime] = None,
        status: str = "normal",
        manual_checkin_time: Optional[str] = None
    ) -> CheckoutResult:
        at, status = self._normalize(at, status)
        day = to_day(at)
        flex = self.is_flex(db, employee_id)
        workday = self.workday_repo.get_by_employee_day(db, employee_id, day)
        state = derive_state(workday)

        if state.phase is WorkdayPhase.CHECKED_OUT and not flex:
            logger.debug(f"Checkout rejected for employee {employee_id}: already checked out")
            return CheckoutResult(
                ok=False,
                error="Already checked out",
                code=RejectionCode.ALREADY_CHECKED_OUT.value,
                workday_id=workday.wd_id,
                flex=flex
            )

        if not state.checked_in:
            manual_time = parse_time_of_day(manual_checkin_time) if manual_checkin_time else None
            if manual_time is None and not flex:
                logger.debug(f"Checkout rejected for employee {employee_id}: no check-in and no manual time")
                return CheckoutResult(
                    ok=False,
                    error="Missing check-in. Provide manual check-in time.",
                    code=RejectionCode.MANUAL_CHECKIN_REQUIRED.value,
                    workday_id=workday.wd_id if workday else None,
                    flex=flex
                )
            workday = self._checkin_for_checkout(db, employee_id, day, workday, at, status, manual_time, flex)

        workday = self.workday_repo.apply_update(
            db, workday, WorkdayUpdate(wd_checkout_at=at, wd_checkout_status=status)
        )
        self._add_event(db, workday, EventType.CHECKOUT, at, status, {"flex": True} if flex else None)

        self.recalc_workday_totals(db, workday, flex)
        logger.info(f"Employee {employee_id} checked out at {at:%H:%M}")

        return CheckoutResult(workday_id=workday.wd_id, flex=flex)

    @store_guarded
    def start_lunch(
        self,
        db: Session,
        employee_id: int,
        at: Optional[datetime] = None,
        status: str = "normal"
    ) -> LunchResult:
        at, status = self._normalize(at, status)
        flex = self.is_flex(db, employee_id)
        workday = self.workday_repo.get_by_employee_day(db, employee_id, to_day(at))

        if not derive_state(workday).checked_in:
            return LunchResult(ok=False, error="Must check in first", code=RejectionCode.MUST_CHECK_IN_FIRST.value)

        if not flex:
            if workday.wd_lunch_start is not None:
                return LunchResult(
                    ok=False,
                    error="Lunch already started",
                    code=RejectionCode.LUNCH_ALREADY_STARTED.value,
                    workday_id=workday.wd_id
                )

            earliest = workday.wd_checkin_at + timedelta(minutes=self.policy.lunch_min_after_checkin_min)
            if at < earliest:
                return LunchResult(
                    ok=False,
                    error="Lunch can start only 1 hour after check-in",
                    code=RejectionCode.LUNCH_TOO_EARLY.value,
                    workday_id=workday.wd_id
                )

            if workday.wd_checkout_at is not None:
                latest = workday.wd_checkout_at - timedelta(minutes=self.policy.lunch_min_before_checkout_min)
                if at > latest:
                    return LunchResult(
                        ok=False,
                        error="Lunch must start at least 2 hours before checkout",
                        code=RejectionCode.LUNCH_TOO_LATE.value,
                        workday_id=workday.wd_id
                    )

        workday = self.workday_repo.apply_update(
            db, workday, WorkdayUpdate(wd_lunch_start=at, wd_lunch_status=status)
        )
        self._add_event(db, workday, EventType.LUNCH_START, at, status, {"flex": True} if flex else None)
        self.recalc_workday_totals(db, workday, flex)
        logger.info(f"Employee {employee_id} started lunch at {at:%H:%M}")

        return LunchResult(workday_id=workday.wd_id)

    @store_guarded
    def end_lunch(
        self,
        db: Session,
        employee_id: int,
        at: Optional[datetime] = None,
        status: str = "normal"
    ) -> LunchResult:
        at, status = self._normalize(at, status)
        flex = self.is_flex(db, employee_id)
        workday = self.workday_repo.get_by_employee_day(db, employee_id, to_day(at))

        if workday is None or workday.wd_lunch_start is None:
            return LunchResult(ok=False, error="Lunch not started", code=RejectionCode.LUNCH_NOT_STARTED.value)
        if workday.wd_lunch_end is not None and not flex:
            return LunchResult(
                ok=False,
                error="Lunch already ended",
                code=RejectionCode.LUNCH_ALREADY_ENDED.value,
                workday_id=workday.wd_id
            )

        duration = clamp_min(minutes_between(workday.wd_lunch_start, at))
        if not flex and duration > self.policy.lunch_max_min:
            self.raise_incident(
                db, workday, IncidentCode.LUNCH_EXCEED_60,
                f"Lunch exceeded {self.policy.lunch_max_min} min ({duration}). Compensation applies.",
                occurred_at=at,
                notify_after=self.notify_after(at)
            )

        workday = self.workday_repo.apply_update(db, workday, WorkdayUpdate(wd_lunch_end=at))
        meta = {"flex": True, "durationMin": duration} if flex else None
        self._add_event(db, workday, EventType.LUNCH_END, at, status, meta)
        self.recalc_workday_totals(db, workday, flex)
        logger.info(f"Employee {employee_id} ended lunch after {duration} min")

        return LunchResult(workday_id=workday.wd_id, duration_min=duration)

    @store_guarded
    def start_mini_break(
        self,
        db: Session,
        employee_id: int,
        at: Optional[datetime] = None,
        status: str = "normal"
    ) -> MiniBreakStartResult:
        at, status = self._normalize(at, status)
        flex = self.is_flex(db, employee_id)
        workday = self.workday_repo.get_by_employee_day(db, employee_id, to_day(at))
        state = derive_state(workday)

        if not state.checked_in:
            return MiniBreakStartResult(ok=False, error="Must check in first", code=RejectionCode.MUST_CHECK_IN_FIRST.value)
        if state.phase is WorkdayPhase.CHECKED_OUT and not flex:
            return MiniBreakStartResult(ok=False, error="Already checked out", code=RejectionCode.ALREADY_CHECKED_OUT.value)

        breaks = self.mini_break_repo.get_workday_breaks(db, workday.wd_id)
        mini_count = len(breaks)

        boundary = workday.wd_lunch_start or set_time_on_date(workday.wd_day_date, self.policy.lunch_window_start)
        before_count = sum(1 for b in breaks if b.mb_start_at < boundary)
        after_count = mini_count - before_count
        is_before_lunch = at < boundary
        phase = MiniBreakPhase.BEFORE_LUNCH if is_before_lunch else MiniBreakPhase.AFTER_LUNCH

        # Structural limits only apply until the daily quota is used up
        if not flex and mini_count < self.policy.mini_break_max_per_day:
            if is_before_lunch:
                if before_count >= self.policy.mini_break_before_limit:
                    return MiniBreakStartResult(
                        ok=False,
                        error=f"Mini-break limit reached before lunch (max {self.policy.mini_break_before_limit}).",
                        code=RejectionCode.MINI_BREAK_LIMIT_BEFORE_LUNCH.value,
                        mini_count_before=mini_count,
                        phase=phase.value
                    )
            else:
                if before_count >= self.policy.mini_break_before_limit:
                    after_limit = self.policy.mini_break_after_default
                else:
                    after_limit = self.policy.mini_break_after_full
                if after_count >= after_limit:
                    return MiniBreakStartResult(
                        ok=False,
                        error="Mini-break limit reached after lunch.",
                        code=RejectionCode.MINI_BREAK_LIMIT_AFTER_LUNCH.value,
                        mini_count_before=mini_count,
                        phase=phase.value
                    )

        notice = None
        if not flex and mini_count >= self.policy.mini_break_max_per_day:
            self.raise_incident(
                db, workday, IncidentCode.MINI_BREAK_OVER_3,
                f"More than {self.policy.mini_break_max_per_day} mini-breaks requested. "
                f"Extra time must be compensated 1:{self.policy.comp_ratio} after work.",
                occurred_at=at,
                notify_after=at
            )
            notice = (
                f"Mini-break approved, but extra time must be compensated "
                f"1:{self.policy.comp_ratio} after working hours."
            )

        if not flex and self.mini_break_repo.get_open_break(db, workday.wd_id) is not None:
            return MiniBreakStartResult(
                ok=False,
                error="Mini-break already running",
                code=RejectionCode.MINI_BREAK_ALREADY_RUNNING.value,
                mini_count_before=mini_count,
                phase=phase.value
            )

        mini_break = self.mini_break_repo.open_break(db, {
            "mb_workday_id": workday.wd_id,
            "mb_employee_id": employee_id,
            "mb_start_at": at,
            "mb_status": status
        })

        meta = {"miniBreakId": mini_break.mb_id, "phase": phase.value}
        if flex:
            meta["flex"] = True
        self._add_event(db, workday, EventType.MINI_BREAK_START, at, status, meta)
        self.recalc_workday_totals(db, workday, flex)
        logger.info(f"Employee {employee_id} started mini-break #{mini_count + 1} ({phase.value})")

        return MiniBreakStartResult(
            mini_break_id=mini_break.mb_id,
            mini_count_before=mini_count,
            phase=phase.value,
            notice=notice
        )

    @store_guarded
    def end_mini_break(
        self,
        db: Session,
        employee_id: int,
        at: Optional[datetime] = None,
        status: str = "normal"
    ) -> MiniBreakEndResult:
        at, status = self._normalize(at, status)
        workday = self.workday_repo.get_by_employee_day(db, employee_id, to_day(at))
        if workday is None:
            return MiniBreakEndResult(ok=False, error="No workday found", code=RejectionCode.NO_WORKDAY.value)

        flex = self.is_flex(db, employee_id)
        open_break = self.mini_break_repo.get_open_break(db, workday.wd_id)
        if open_break is None:
            return MiniBreakEndResult(
                ok=False,
                error="No mini-break running",
                code=RejectionCode.NO_MINI_BREAK_RUNNING.value
            )

        duration = clamp_min(minutes_between(open_break.mb_start_at, at))
        exceeded = 0 if flex else clamp_min(duration - self.policy.mini_break_max_min)

        self.mini_break_repo.close_break(db, open_break, {
            "mb_end_at": at,
            "mb_duration_minutes": duration,
            "mb_exceeded_minutes": exceeded,
            "mb_status": status
        })

        meta = {"durationMin": duration, "exceededMin": exceeded}
        if flex:
            meta["flex"] = True
        self._add_event(db, workday, EventType.MINI_BREAK_END, at, status, meta)

        if not flex and exceeded > 0:
            self.raise_incident(
                db, workday, IncidentCode.MINI_BREAK_EXCEED_7,
                f"Mini-break exceeded {self.policy.mini_break_max_min} min by {exceeded} min. "
                f"Compensation: {exceeded * self.policy.comp_ratio} min.",
                occurred_at=at,
                notify_after=self.notify_after(at)
            )

        totals = self.recalc_workday_totals(db, workday, flex)

        if not flex and totals.exceeded_total > 0:
            self.raise_incident(
                db, workday, IncidentCode.BREAK_EXCEED_60,
                f"Total breaks exceeded {self.policy.total_break_max_min} min by "
                f"{totals.exceeded_total} min. Compensation applies.",
                occurred_at=at,
                notify_after=self.notify_after(at)
            )

        logger.info(f"Employee {employee_id} ended mini-break after {duration} min (exceeded {exceeded})")

        return MiniBreakEndResult(duration_min=duration, exceeded_min=exceeded, totals=totals)

    # ==================== AUTO-CLOSER ====================

    @store_guarded
    def apply_auto_rules_for_day(
        self,
        db: Session,
        employee_id: int,
        day: Union[str, date],
        now: Optional[datetime] = None
    ) -> None:
        """
        Force default lunch and checkout onto a day the employee left open

        Idempotent: fields already present are left alone and the AUTO_*
        incidents are deduplicated per workday.
        """
        day = parse_day(day)
        now = now_local() if now is None else to_local_naive(now)

        if self.is_flex(db, employee_id):
            return

        workday = self.workday_repo.get_by_employee_day(db, employee_id, day)
        if workday is None:
            return

        auto = EventStatus.AUTO.value

        if workday.wd_lunch_start is None and workday.wd_lunch_end is None:
            lunch_start = set_time_on_date(day, self.policy.lunch_window_start)
            lunch_end = set_time_on_date(day, self.policy.lunch_window_end)
            workday = self.workday_repo.apply_update(db, workday, WorkdayUpdate(
                wd_lunch_start=lunch_start,
                wd_lunch_end=lunch_end,
                wd_lunch_status=auto
            ))
            self._add_event(db, workday, EventType.LUNCH_START, lunch_start, auto, {"auto": True})
            self._add_event(db, workday, EventType.LUNCH_END, lunch_end, auto, {"auto": True})
            self.raise_incident(
                db, workday, IncidentCode.AUTO_LUNCH,
                f"Lunch auto-registered ({self.policy.lunch_window_start:%H:%M}-"
                f"{self.policy.lunch_window_end:%H:%M}) because it was not used.",
                occurred_at=now,
                notify_after=self.notify_after(now),
                severity=Severity.INFO
            )

        if workday.wd_checkout_at is None:
            checkout_at = set_time_on_date(day, self.policy.checkout_auto_at)
            workday = self.workday_repo.apply_update(db, workday, WorkdayUpdate(
                wd_checkout_at=checkout_at,
                wd_checkout_status=auto
            ))
            self._add_event(db, workday, EventType.CHECKOUT, checkout_at, auto, {"auto": True})
            self.raise_incident(
                db, workday, IncidentCode.AUTO_CHECKOUT,
                f"Checkout auto-registered at {self.policy.checkout_auto_at:%H:%M}.",
                occurred_at=now,
                notify_after=self.notify_after(now),
                severity=Severity.INFO
            )

        self.recalc_workday_totals(db, workday, flex=False)
