from .employee import Employee
from .workday import Workday
from .attendance_event import AttendanceEvent
from .mini_break import MiniBreak
from .incident import Incident

__all__ = [
    "Employee",
    "Workday",
    "AttendanceEvent",
    "MiniBreak",
    "Incident"
]
