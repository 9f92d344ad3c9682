from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import StoreError
from app.core.rules import IncidentCode
from app.models import AttendanceEvent, Incident, MiniBreak, Workday
from app.repositories.incident_repository import IncidentRepository
from tests.conftest import at


def _expected_compensation(db, workday):
    exceeded = sum(b.mb_exceeded_minutes or 0 for b in db.query(MiniBreak).all())
    return workday.wd_late_minutes + exceeded + max(0, workday.wd_break_total_minutes - 60)


def test_total_breaks_over_sixty_stack_with_per_break_overage(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.start_lunch(db, employee.em_id, at(12, 0))
    rules.end_lunch(db, employee.em_id, at(12, 55))
    rules.start_mini_break(db, employee.em_id, at(14, 0))
    ended = rules.end_mini_break(db, employee.em_id, at(14, 10))

    assert ended.totals.break_total == 65
    assert ended.totals.exceeded_total == 5
    assert ended.totals.compensation == 8
    assert ended.totals.compensation_work == 24

    codes = sorted(i.in_code for i in db.query(Incident).all())
    assert codes == ["BREAK_EXCEED_60", "MINI_BREAK_EXCEED_7"]

    total_incident = db.query(Incident).filter(Incident.in_code == "BREAK_EXCEED_60").one()
    assert "by 5 min" in total_incident.in_message


def test_compensation_invariant_over_a_busy_day(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 12))
    rules.start_mini_break(db, employee.em_id, at(10, 0))
    rules.end_mini_break(db, employee.em_id, at(10, 9))
    rules.start_lunch(db, employee.em_id, at(12, 0))
    rules.end_lunch(db, employee.em_id, at(13, 5))
    rules.start_mini_break(db, employee.em_id, at(15, 0))
    rules.end_mini_break(db, employee.em_id, at(15, 20))
    rules.check_out(db, employee.em_id, at(18, 0))

    workday = db.query(Workday).one()
    assert workday.wd_late_minutes == 7
    assert workday.wd_break_total_minutes == 9 + 65 + 20
    assert workday.wd_compensation_minutes == _expected_compensation(db, workday)
    assert workday.wd_compensation_work_minutes == workday.wd_compensation_minutes * 3


def test_flex_totals_keep_break_time_but_no_compensation(db, rules, flex_employee):
    rules.check_in(db, flex_employee.em_id, at(9, 0))
    rules.start_lunch(db, flex_employee.em_id, at(11, 0))
    rules.end_lunch(db, flex_employee.em_id, at(13, 0))

    workday = db.query(Workday).one()
    assert workday.wd_break_total_minutes == 120
    assert workday.wd_compensation_minutes == 0
    assert workday.wd_compensation_work_minutes == 0


def test_raise_incident_is_idempotent(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    workday = db.query(Workday).one()

    first = rules.raise_incident(db, workday, IncidentCode.LUNCH_EXCEED_60, "first", at(13, 0), at(20, 0))
    second = rules.raise_incident(db, workday, IncidentCode.LUNCH_EXCEED_60, "second", at(14, 0), at(20, 0))

    assert first.in_id == second.in_id
    assert db.query(Incident).count() == 1
    assert db.query(Incident).one().in_message == "first"


def test_incident_failure_keeps_the_transition(db, rules, employee):
    with patch.object(
        IncidentRepository, "raise_incident", side_effect=OperationalError("INSERT", {}, Exception("down"))
    ):
        result = rules.check_in(db, employee.em_id, at(9, 30))

    assert result.ok is True
    assert result.late_min == 25
    assert db.query(Workday).one().wd_checkin_at == at(9, 30)
    assert db.query(Incident).count() == 0


def test_store_failure_is_raised_as_store_error(db, rules, employee):
    with patch.object(
        rules.workday_repo, "get_by_employee_day", side_effect=OperationalError("SELECT", {}, Exception("down"))
    ):
        with pytest.raises(StoreError):
            rules.check_in(db, employee.em_id, at(9, 0))


def test_failed_check_in_leaves_nothing_behind(db, rules, employee):
    with patch.object(
        rules.event_repo, "create_event", side_effect=OperationalError("INSERT", {}, Exception("down"))
    ):
        with pytest.raises(StoreError):
            rules.check_in(db, employee.em_id, at(9, 30))

    assert db.query(Workday).count() == 0
    assert db.query(AttendanceEvent).count() == 0

    retry = rules.check_in(db, employee.em_id, at(9, 30))

    assert retry.ok is True
    assert retry.late_min == 25
    assert [i.in_code for i in db.query(Incident).all()] == ["LATE_CHECKIN"]


def test_failed_mini_break_end_keeps_the_break_running(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.start_mini_break(db, employee.em_id, at(10, 0))

    with patch.object(
        rules.event_repo, "create_event", side_effect=OperationalError("INSERT", {}, Exception("down"))
    ):
        with pytest.raises(StoreError):
            rules.end_mini_break(db, employee.em_id, at(10, 20))

    running = db.query(MiniBreak).one()
    assert running.mb_end_at is None
    assert running.mb_duration_minutes is None
    assert db.query(Incident).count() == 0

    assert rules.end_mini_break(db, employee.em_id, at(10, 20)).exceeded_min == 13


def test_recalc_is_idempotent(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 20))
    workday = db.query(Workday).one()

    first = rules.recalc_workday_totals(db, workday, flex=False)
    second = rules.recalc_workday_totals(db, workday, flex=False)

    assert first == second
    assert second.compensation == 15
