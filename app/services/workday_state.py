"""
Workday state derived from the stored timestamp columns
"""
from enum import Enum
from typing import NamedTuple, Optional

from app.models.workday import Workday


class WorkdayPhase(str, Enum):
    NOT_STARTED = "not_started"
    CHECKED_IN = "checked_in"
    ON_LUNCH = "on_lunch"
    CHECKED_OUT = "checked_out"


class WorkdayState(NamedTuple):
    phase: WorkdayPhase
    mini_break_open: bool = False

    @property
    def checked_in(self) -> bool:
        return self.phase is not WorkdayPhase.NOT_STARTED


def derive_phase(workday: Optional[Workday]) -> WorkdayPhase:
    if workday is None or workday.wd_checkin_at is None:
        return WorkdayPhase.NOT_STARTED
    if workday.wd_checkout_at is not None:
        return WorkdayPhase.CHECKED_OUT
    if workday.wd_lunch_start is not None and workday.wd_lunch_end is None:
        return WorkdayPhase.ON_LUNCH
    return WorkdayPhase.CHECKED_IN


def derive_state(workday: Optional[Workday], mini_break_open: bool = False) -> WorkdayState:
    """
    Tag a workday with its phase.

    The mini-break flag is orthogonal to the phase; it only counts while the
    day is checked in and not checked out.
    """
    phase = derive_phase(workday)
    open_flag = mini_break_open and phase in (WorkdayPhase.CHECKED_IN, WorkdayPhase.ON_LUNCH)
    return WorkdayState(phase=phase, mini_break_open=open_flag)
