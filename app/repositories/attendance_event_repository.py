"""
Attendance Event Repository - Data access layer for attendance events
"""
from typing import List
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from app.models.attendance_event import AttendanceEvent


class AttendanceEventRepository(BaseRepository[AttendanceEvent]):
    def __init__(self):
        super().__init__(AttendanceEvent)

    def create_event(self, db: Session, event_data: dict) -> AttendanceEvent:
        """Add an attendance event to the caller's transaction (flushed, not committed)"""
        db_event = AttendanceEvent(**event_data)
        db.add(db_event)
        db.flush()
        return db_event

    def get_workday_events(self, db: Session, workday_id: int) -> List[AttendanceEvent]:
        """Events of a workday in occurrence order using ORM"""
        return db.query(AttendanceEvent).filter(
            AttendanceEvent.ae_workday_id == workday_id
        ).order_by(AttendanceEvent.ae_occurred_at.asc(), AttendanceEvent.ae_id.asc()).all()
