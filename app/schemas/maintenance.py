"""
Maintenance Schemas for the scheduled sweeps
"""
from datetime import date
from pydantic import BaseModel


class AutoRulesRunResult(BaseModel):
    """Auto-closer sweep result"""
    day: date
    processed: int
    skipped_flex: int
    message: str


class NotifyRunResult(BaseModel):
    """Incident notifier sweep result"""
    sent_count: int
    message: str
