from app.models import AttendanceEvent, Incident, Workday
from tests.conftest import at


def test_lunch_requires_check_in(db, rules, employee):
    result = rules.start_lunch(db, employee.em_id, at(12, 0))

    assert result.ok is False
    assert result.error == "Must check in first"
    assert result.code == "MUST_CHECK_IN_FIRST"


def test_lunch_too_early_after_check_in(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    result = rules.start_lunch(db, employee.em_id, at(9, 30))

    assert result.ok is False
    assert result.code == "LUNCH_TOO_EARLY"
    assert result.error == "Lunch can start only 1 hour after check-in"
    assert db.query(Workday).one().wd_lunch_start is None


def test_lunch_exactly_one_hour_after_check_in(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    result = rules.start_lunch(db, employee.em_id, at(10, 0))

    assert result.ok is True


def test_lunch_too_close_to_checkout(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.check_out(db, employee.em_id, at(14, 0))

    result = rules.start_lunch(db, employee.em_id, at(12, 30))

    assert result.ok is False
    assert result.code == "LUNCH_TOO_LATE"


def test_lunch_two_hours_before_checkout_is_allowed(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.check_out(db, employee.em_id, at(14, 0))

    result = rules.start_lunch(db, employee.em_id, at(12, 0))

    assert result.ok is True


def test_lunch_cannot_start_twice(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.start_lunch(db, employee.em_id, at(12, 0))
    result = rules.start_lunch(db, employee.em_id, at(12, 5))

    assert result.ok is False
    assert result.code == "LUNCH_ALREADY_STARTED"


def test_end_lunch_without_start(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    result = rules.end_lunch(db, employee.em_id, at(13, 0))

    assert result.ok is False
    assert result.error == "Lunch not started"
    assert result.code == "LUNCH_NOT_STARTED"


def test_end_lunch_twice(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.start_lunch(db, employee.em_id, at(12, 0))
    rules.end_lunch(db, employee.em_id, at(12, 45))
    result = rules.end_lunch(db, employee.em_id, at(13, 0))

    assert result.ok is False
    assert result.code == "LUNCH_ALREADY_ENDED"
    assert db.query(Workday).one().wd_lunch_end == at(12, 45)


def test_lunch_within_limit(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.start_lunch(db, employee.em_id, at(12, 0))
    result = rules.end_lunch(db, employee.em_id, at(12, 50))

    assert result.ok is True
    assert result.duration_min == 50

    workday = db.query(Workday).one()
    assert workday.wd_break_total_minutes == 50
    assert workday.wd_compensation_minutes == 0
    assert db.query(Incident).count() == 0


def test_lunch_over_sixty_minutes(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.start_lunch(db, employee.em_id, at(12, 0))
    result = rules.end_lunch(db, employee.em_id, at(13, 15))

    assert result.ok is True
    assert result.duration_min == 75

    incident = db.query(Incident).one()
    assert incident.in_code == "LUNCH_EXCEED_60"
    assert "(75)" in incident.in_message
    assert incident.in_notify_after == at(20, 0)

    workday = db.query(Workday).one()
    assert workday.wd_break_total_minutes == 75
    assert workday.wd_compensation_minutes == 15
    assert workday.wd_compensation_work_minutes == 45


def test_lunch_events_are_recorded(db, rules, employee):
    rules.check_in(db, employee.em_id, at(9, 0))
    rules.start_lunch(db, employee.em_id, at(12, 0))
    rules.end_lunch(db, employee.em_id, at(12, 30))

    events = db.query(AttendanceEvent).order_by(AttendanceEvent.ae_id).all()
    assert [e.ae_event_type for e in events] == ["checkin", "lunch_start", "lunch_end"]
    assert events[1].ae_meta is None


def test_flex_lunch_ignores_ordering_rules(db, rules, flex_employee):
    rules.check_in(db, flex_employee.em_id, at(11, 0))

    started = rules.start_lunch(db, flex_employee.em_id, at(11, 10))
    ended = rules.end_lunch(db, flex_employee.em_id, at(13, 0))
    restarted = rules.start_lunch(db, flex_employee.em_id, at(14, 0))

    assert started.ok and ended.ok and restarted.ok
    assert ended.duration_min == 110
    assert db.query(Incident).count() == 0

    workday = db.query(Workday).one()
    assert workday.wd_compensation_minutes == 0

    lunch_end = db.query(AttendanceEvent).filter(AttendanceEvent.ae_event_type == "lunch_end").one()
    assert lunch_end.ae_meta == {"flex": True, "durationMin": 110}
