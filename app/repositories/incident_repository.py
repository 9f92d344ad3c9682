"""
Incident Repository - Deduplicated register of policy incidents
"""
from typing import List, Optional
from datetime import date, datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from atams.db import BaseRepository
from app.models.incident import Incident


class IncidentRepository(BaseRepository[Incident]):
    def __init__(self):
        super().__init__(Incident)

    def get_by_workday_code(self, db: Session, workday_id: int, code: str) -> Optional[Incident]:
        """Get incident by (workday, code) using ORM"""
        return db.query(Incident).filter(
            Incident.in_workday_id == workday_id,
            Incident.in_code == code
        ).first()

    def raise_incident(self, db: Session, incident_data: dict) -> tuple[Incident, bool]:
        """
        Insert an incident unless one with the same (workday, code) exists.

        Returns:
            (incident, created) - created is False when the existing row was kept

        The row is flushed into the caller's transaction, not committed.
        """
        workday_id = incident_data["in_workday_id"]
        code = incident_data["in_code"]

        existing = self.get_by_workday_code(db, workday_id, code)
        if existing:
            return existing, False

        try:
            with db.begin_nested():
                incident = Incident(**incident_data)
                db.add(incident)
            return incident, True
        except IntegrityError:
            # Concurrent insert for the same pair won the unique constraint
            existing = self.get_by_workday_code(db, workday_id, code)
            if existing is None:
                raise
            return existing, False

    def get_workday_incidents(self, db: Session, workday_id: int) -> List[Incident]:
        """Incidents of a workday in occurrence order using ORM"""
        return db.query(Incident).filter(
            Incident.in_workday_id == workday_id
        ).order_by(Incident.in_occurred_at.asc(), Incident.in_id.asc()).all()

    def get_due_incidents(self, db: Session, now: datetime, limit: int = 50) -> List[Incident]:
        """Unsent incidents whose notify_after has passed, oldest first"""
        return db.query(Incident).filter(
            Incident.in_notified_at.is_(None),
            Incident.in_notify_after <= now
        ).order_by(Incident.in_notify_after.asc(), Incident.in_id.asc()).limit(limit).all()

    def mark_notified(self, db: Session, incident: Incident, notified_at: datetime) -> Incident:
        return self.update(db, incident, {"in_notified_at": notified_at})

    def get_employee_incidents(
        self,
        db: Session,
        employee_id: int,
        date_from: date = None,
        date_to: date = None,
        severity: str = None
    ) -> List[Incident]:
        """Incidents of an employee with optional filters using ORM"""
        query = db.query(Incident).filter(Incident.in_employee_id == employee_id)

        if date_from:
            query = query.filter(Incident.in_occurred_at >= datetime.combine(date_from, datetime.min.time()))
        if date_to:
            next_day = datetime.combine(date_to + timedelta(days=1), datetime.min.time())
            query = query.filter(Incident.in_occurred_at < next_day)
        if severity:
            query = query.filter(Incident.in_severity == severity)

        return query.order_by(Incident.in_occurred_at.desc(), Incident.in_id.desc()).all()
