"""
Workday Repository - Data access layer for daily attendance records
"""
from typing import List, Optional
from datetime import date
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from atams.db import BaseRepository
from app.models.workday import Workday
from app.schemas.attendance import WorkdayUpdate


class WorkdayRepository(BaseRepository[Workday]):
    def __init__(self):
        super().__init__(Workday)

    def get_by_employee_day(self, db: Session, employee_id: int, day: date) -> Optional[Workday]:
        """Get the workday for employee on a calendar day using ORM"""
        return db.query(Workday).filter(
            Workday.wd_employee_id == employee_id,
            Workday.wd_day_date == day
        ).first()

    def create_for_day(self, db: Session, employee_id: int, day: date, fields: Optional[dict] = None) -> Workday:
        """
        Add the workday row for (employee, day) to the caller's transaction.

        A concurrent insert for the same pair hits the unique constraint;
        only the savepoint is rolled back and the fields are applied to the
        row that won.
        """
        data = {"wd_employee_id": employee_id, "wd_day_date": day, **(fields or {})}
        try:
            with db.begin_nested():
                workday = Workday(**data)
                db.add(workday)
            return workday
        except IntegrityError:
            existing = self.get_by_employee_day(db, employee_id, day)
            if existing is None:
                raise
            return self._assign(db, existing, fields or {})

    def apply_update(self, db: Session, workday: Workday, changes: WorkdayUpdate) -> Workday:
        """Write only the fields set on the partial update"""
        data = changes.model_dump(exclude_unset=True)
        if not data:
            return workday
        return self._assign(db, workday, data)

    def _assign(self, db: Session, workday: Workday, data: dict) -> Workday:
        for field, value in data.items():
            setattr(workday, field, value)
        db.flush()
        return workday

    def get_for_day(self, db: Session, employee_ids: List[int], day: date) -> List[Workday]:
        """Workdays of several employees on one day using ORM"""
        if not employee_ids:
            return []
        return db.query(Workday).filter(
            Workday.wd_employee_id.in_(employee_ids),
            Workday.wd_day_date == day
        ).all()
