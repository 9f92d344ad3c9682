from .attendance import (
    Workday,
    WorkdayUpdate,
    MiniBreak,
    Incident,
    WorkdayTotals,
    TransitionResult,
    CheckinResult,
    CheckoutResult,
    LunchResult,
    MiniBreakStartResult,
    MiniBreakEndResult,
    CheckoutRequest
)
from .timeline import (
    EmployeeBrief,
    TimelineEntry,
    DaySummary,
    DayTimeline,
    LiveEntry,
    LiveOverview
)
from .maintenance import AutoRulesRunResult, NotifyRunResult
from .common import DataResponse, PaginationResponse

__all__ = [
    # Attendance schemas
    "Workday",
    "WorkdayUpdate",
    "MiniBreak",
    "Incident",
    "WorkdayTotals",
    "TransitionResult",
    "CheckinResult",
    "CheckoutResult",
    "LunchResult",
    "MiniBreakStartResult",
    "MiniBreakEndResult",
    "CheckoutRequest",
    # Timeline schemas
    "EmployeeBrief",
    "TimelineEntry",
    "DaySummary",
    "DayTimeline",
    "LiveEntry",
    "LiveOverview",
    # Maintenance schemas
    "AutoRulesRunResult",
    "NotifyRunResult",
    # Common schemas
    "DataResponse",
    "PaginationResponse"
]
