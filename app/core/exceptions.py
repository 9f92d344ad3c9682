"""
Infrastructure error kinds raised by the attendance services

Policy rejections are not exceptions; they come back as results with ok=False.
"""
from typing import Any, Dict, Optional

from atams.exceptions import BadRequestException, ServiceUnavailableException


class ValidationError(BadRequestException):
    """Malformed day, time or timestamp input (400)"""

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class StoreError(ServiceUnavailableException):
    """Attendance store failed while applying a transition (503)"""

    def __init__(self, message: str = "Attendance store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
