from .employee_repository import EmployeeRepository
from .workday_repository import WorkdayRepository
from .attendance_event_repository import AttendanceEventRepository
from .mini_break_repository import MiniBreakRepository
from .incident_repository import IncidentRepository

__all__ = [
    "EmployeeRepository",
    "WorkdayRepository",
    "AttendanceEventRepository",
    "MiniBreakRepository",
    "IncidentRepository"
]
