from datetime import datetime, timezone

import pytest

from app.core.exceptions import ValidationError
from app.models import AttendanceEvent, Incident, Workday
from tests.conftest import DAY, at


def _incident_codes(db, employee_id):
    return [i.in_code for i in db.query(Incident).filter(Incident.in_employee_id == employee_id).all()]


class TestCheckIn:
    def test_on_time_check_in_creates_workday(self, db, rules, employee):
        result = rules.check_in(db, employee.em_id, at(8, 55))

        assert result.ok is True
        assert result.late_min == 0
        assert result.notice is None

        workday = db.query(Workday).one()
        assert workday.wd_day_date == DAY
        assert workday.wd_checkin_at == at(8, 55)
        assert workday.wd_checkin_status == "normal"
        assert result.workday_id == workday.wd_id
        assert _incident_codes(db, employee.em_id) == []

    def test_late_check_in_raises_incident(self, db, rules, employee):
        result = rules.check_in(db, employee.em_id, at(9, 10))

        assert result.ok is True
        assert result.late_min == 5
        assert "15" in result.notice

        incident = db.query(Incident).one()
        assert incident.in_code == "LATE_CHECKIN"
        assert "15" in incident.in_message
        assert incident.in_severity == "warn"
        assert incident.in_notify_after == at(9, 10)

        workday = db.query(Workday).one()
        assert workday.wd_late_minutes == 5
        assert workday.wd_compensation_minutes == 5
        assert workday.wd_compensation_work_minutes == 15

    def test_check_in_at_cutoff_is_not_late(self, db, rules, employee):
        result = rules.check_in(db, employee.em_id, at(9, 5))

        assert result.late_min == 0
        assert _incident_codes(db, employee.em_id) == []

    def test_check_in_event_carries_late_minutes(self, db, rules, employee):
        rules.check_in(db, employee.em_id, at(9, 20))

        event = db.query(AttendanceEvent).one()
        assert event.ae_event_type == "checkin"
        assert event.ae_status == "normal"
        assert event.ae_meta == {"lateMin": 15}

    def test_second_check_in_is_rejected(self, db, rules, employee):
        rules.check_in(db, employee.em_id, at(9, 0))
        result = rules.check_in(db, employee.em_id, at(9, 30))

        assert result.ok is False
        assert result.error == "Already checked in today"
        assert result.code == "ALREADY_CHECKED_IN"
        assert db.query(Workday).one().wd_checkin_at == at(9, 0)
        assert db.query(AttendanceEvent).count() == 1

    def test_flex_double_check_in(self, db, rules, flex_employee):
        first = rules.check_in(db, flex_employee.em_id, at(10, 30))
        second = rules.check_in(db, flex_employee.em_id, at(11, 0))

        assert first.ok and second.ok
        assert first.late_min == 0 and second.late_min == 0
        assert first.flex is True
        assert _incident_codes(db, flex_employee.em_id) == []
        assert db.query(Workday).count() == 1

    def test_aware_timestamp_is_converted_to_local_day(self, db, rules, employee):
        rules.check_in(db, employee.em_id, datetime(2025, 3, 10, 8, 10, tzinfo=timezone.utc))

        workday = db.query(Workday).one()
        assert workday.wd_checkin_at == at(9, 10)
        assert workday.wd_late_minutes == 5

    def test_invalid_status_is_a_validation_error(self, db, rules, employee):
        with pytest.raises(ValidationError):
            rules.check_in(db, employee.em_id, at(9, 0), status="late")

    def test_unknown_employee_is_handled_as_non_exempt(self, db, rules):
        result = rules.check_in(db, 99, at(9, 15))

        assert result.ok is True
        assert result.flex is False
        assert result.late_min == 10


class TestCheckOut:
    def test_check_out(self, db, rules, employee):
        rules.check_in(db, employee.em_id, at(9, 0))
        result = rules.check_out(db, employee.em_id, at(17, 30))

        assert result.ok is True
        workday = db.query(Workday).one()
        assert workday.wd_checkout_at == at(17, 30)
        assert workday.wd_checkout_status == "normal"

    def test_second_check_out_is_rejected(self, db, rules, employee):
        rules.check_in(db, employee.em_id, at(9, 0))
        rules.check_out(db, employee.em_id, at(17, 0))
        result = rules.check_out(db, employee.em_id, at(18, 0))

        assert result.ok is False
        assert result.code == "ALREADY_CHECKED_OUT"
        assert db.query(Workday).one().wd_checkout_at == at(17, 0)

    def test_check_out_without_check_in_requires_manual_time(self, db, rules, employee):
        result = rules.check_out(db, employee.em_id, at(17, 0))

        assert result.ok is False
        assert "manual check-in" in result.error
        assert result.code == "MANUAL_CHECKIN_REQUIRED"
        assert db.query(Workday).count() == 0
        assert db.query(AttendanceEvent).count() == 0

    def test_check_out_with_manual_check_in(self, db, rules, employee):
        result = rules.check_out(db, employee.em_id, at(17, 0), manual_checkin_time="09:20")

        assert result.ok is True
        workday = db.query(Workday).one()
        assert workday.wd_checkin_at == at(9, 20)
        assert workday.wd_checkin_status == "manual"
        assert workday.wd_late_minutes == 15
        assert workday.wd_checkout_at == at(17, 0)

        events = db.query(AttendanceEvent).order_by(AttendanceEvent.ae_id).all()
        assert [e.ae_event_type for e in events] == ["checkin", "checkout"]
        assert events[0].ae_status == "manual"
        assert events[0].ae_meta == {"reason": "checkout_without_checkin"}

        incident = db.query(Incident).one()
        assert incident.in_code == "NO_CHECKIN_MANUAL_CHECKOUT"
        assert incident.in_notify_after == at(20, 0)

    def test_malformed_manual_time_is_a_validation_error(self, db, rules, employee):
        with pytest.raises(ValidationError):
            rules.check_out(db, employee.em_id, at(17, 0), manual_checkin_time="nine")
        assert db.query(Workday).count() == 0

    def test_manual_time_is_ignored_once_checked_out(self, db, rules, employee):
        rules.check_in(db, employee.em_id, at(9, 0))
        rules.check_out(db, employee.em_id, at(17, 0))

        result = rules.check_out(db, employee.em_id, at(18, 0), manual_checkin_time="nine")

        assert result.ok is False
        assert result.code == "ALREADY_CHECKED_OUT"

    def test_manual_time_is_ignored_when_already_checked_in(self, db, rules, employee):
        rules.check_in(db, employee.em_id, at(9, 0))

        result = rules.check_out(db, employee.em_id, at(17, 0), manual_checkin_time="nine")

        assert result.ok is True
        assert db.query(Workday).one().wd_checkin_at == at(9, 0)

    def test_flex_check_out_without_check_in_synthesizes_one(self, db, rules, flex_employee):
        result = rules.check_out(db, flex_employee.em_id, at(15, 0))

        assert result.ok is True
        workday = db.query(Workday).one()
        assert workday.wd_checkin_at == at(15, 0)
        assert workday.wd_late_minutes == 0

        checkin = db.query(AttendanceEvent).filter(AttendanceEvent.ae_event_type == "checkin").one()
        assert checkin.ae_meta == {"flex": True, "reason": "auto_created_for_checkout"}
        assert _incident_codes(db, flex_employee.em_id) == []

    def test_flex_repeated_check_out_moves_checkout(self, db, rules, flex_employee):
        rules.check_in(db, flex_employee.em_id, at(10, 0))
        rules.check_out(db, flex_employee.em_id, at(16, 0))
        result = rules.check_out(db, flex_employee.em_id, at(18, 0))

        assert result.ok is True
        assert db.query(Workday).one().wd_checkout_at == at(18, 0)
