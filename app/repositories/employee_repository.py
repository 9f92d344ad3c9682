"""
Employee Repository - Profile lookups against the user directory mirror
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from app.models.employee import Employee


class EmployeeRepository(BaseRepository[Employee]):
    def __init__(self):
        super().__init__(Employee)

    def get_by_id(self, db: Session, employee_id: int) -> Optional[Employee]:
        """Get employee by ID using ORM"""
        return db.query(Employee).filter(Employee.em_id == employee_id).first()

    def get_active_employees(self, db: Session) -> List[Employee]:
        """Active rows with the EMPLOYEE role, ordered by name"""
        return db.query(Employee).filter(
            Employee.em_role == "EMPLOYEE",
            Employee.em_is_active.is_(True)
        ).order_by(Employee.em_full_name.asc(), Employee.em_id.asc()).all()
