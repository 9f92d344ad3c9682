"""
Attendance policy - constants, codes and the capability flags injected into the rules engine
"""
from datetime import time
from enum import Enum

from pydantic import BaseModel, ConfigDict


class EventType(str, Enum):
    CHECKIN = "checkin"
    CHECKOUT = "checkout"
    LUNCH_START = "lunch_start"
    LUNCH_END = "lunch_end"
    MINI_BREAK_START = "mini_break_start"
    MINI_BREAK_END = "mini_break_end"


class EventStatus(str, Enum):
    NORMAL = "normal"
    MANUAL = "manual"
    AUTO = "auto"


class Severity(str, Enum):
    INFO = "info"
    WARN = "warn"


class IncidentCode(str, Enum):
    LATE_CHECKIN = "LATE_CHECKIN"
    NO_CHECKIN_MANUAL_CHECKOUT = "NO_CHECKIN_MANUAL_CHECKOUT"
    LUNCH_EXCEED_60 = "LUNCH_EXCEED_60"
    MINI_BREAK_OVER_3 = "MINI_BREAK_OVER_3"
    MINI_BREAK_EXCEED_7 = "MINI_BREAK_EXCEED_7"
    BREAK_EXCEED_60 = "BREAK_EXCEED_60"
    AUTO_LUNCH = "AUTO_LUNCH"
    AUTO_CHECKOUT = "AUTO_CHECKOUT"


class RejectionCode(str, Enum):
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    ALREADY_CHECKED_OUT = "ALREADY_CHECKED_OUT"
    MANUAL_CHECKIN_REQUIRED = "MANUAL_CHECKIN_REQUIRED"
    MUST_CHECK_IN_FIRST = "MUST_CHECK_IN_FIRST"
    LUNCH_ALREADY_STARTED = "LUNCH_ALREADY_STARTED"
    LUNCH_TOO_EARLY = "LUNCH_TOO_EARLY"
    LUNCH_TOO_LATE = "LUNCH_TOO_LATE"
    LUNCH_NOT_STARTED = "LUNCH_NOT_STARTED"
    LUNCH_ALREADY_ENDED = "LUNCH_ALREADY_ENDED"
    MINI_BREAK_LIMIT_BEFORE_LUNCH = "MINI_BREAK_LIMIT_BEFORE_LUNCH"
    MINI_BREAK_LIMIT_AFTER_LUNCH = "MINI_BREAK_LIMIT_AFTER_LUNCH"
    MINI_BREAK_ALREADY_RUNNING = "MINI_BREAK_ALREADY_RUNNING"
    NO_WORKDAY = "NO_WORKDAY"
    NO_MINI_BREAK_RUNNING = "NO_MINI_BREAK_RUNNING"


class MiniBreakPhase(str, Enum):
    BEFORE_LUNCH = "before_lunch"
    AFTER_LUNCH = "after_lunch"


class AttendancePolicy(BaseModel):
    """
    Immutable rule profile for the rules engine

    Built once at startup from settings and passed to RulesService.
    flex_mode_supported replaces any runtime probing of the user directory:
    when False, every employee is handled as non-exempt.
    """
    model_config = ConfigDict(frozen=True)

    checkin_late_after: time = time(9, 5, 0)
    checkout_auto_at: time = time(17, 0, 0)
    lunch_window_start: time = time(12, 0, 0)
    lunch_window_end: time = time(13, 0, 0)
    lunch_max_min: int = 60
    lunch_min_after_checkin_min: int = 60
    lunch_min_before_checkout_min: int = 120
    mini_break_max_min: int = 7
    mini_break_max_per_day: int = 3
    mini_break_before_limit: int = 2
    mini_break_after_default: int = 1
    mini_break_after_full: int = 2
    total_break_max_min: int = 60
    comp_ratio: int = 3
    notify_hour: int = 20
    flex_mode_supported: bool = True

    @classmethod
    def from_settings(cls, settings) -> "AttendancePolicy":
        return cls(
            checkin_late_after=settings.RULE_CHECKIN_LATE_AFTER,
            checkout_auto_at=settings.RULE_CHECKOUT_AUTO_AT,
            lunch_window_start=settings.RULE_LUNCH_WINDOW_START,
            lunch_window_end=settings.RULE_LUNCH_WINDOW_END,
            lunch_max_min=settings.RULE_LUNCH_MAX_MIN,
            lunch_min_after_checkin_min=settings.RULE_LUNCH_MIN_AFTER_CHECKIN_MIN,
            lunch_min_before_checkout_min=settings.RULE_LUNCH_MIN_BEFORE_CHECKOUT_MIN,
            mini_break_max_min=settings.RULE_MINI_BREAK_MAX_MIN,
            mini_break_max_per_day=settings.RULE_MINI_BREAK_MAX_PER_DAY,
            mini_break_before_limit=settings.RULE_MINI_BREAK_BEFORE_LIMIT,
            mini_break_after_default=settings.RULE_MINI_BREAK_AFTER_DEFAULT,
            mini_break_after_full=settings.RULE_MINI_BREAK_AFTER_FULL,
            total_break_max_min=settings.RULE_TOTAL_BREAK_MAX_MIN,
            comp_ratio=settings.RULE_COMP_RATIO,
            notify_hour=settings.RULE_NOTIFY_HOUR,
            flex_mode_supported=settings.FLEX_MODE_SUPPORTED,
        )
