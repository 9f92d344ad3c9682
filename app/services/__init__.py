from .rules_service import RulesService
from .auto_rules_service import AutoRulesService
from .notify_service import NotifyService
from .timeline_service import TimelineService

__all__ = [
    "RulesService",
    "AutoRulesService",
    "NotifyService",
    "TimelineService"
]
