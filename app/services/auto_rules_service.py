"""
Auto Rules Service - End-of-day sweep closing open workdays
"""
from datetime import date, datetime
from typing import Optional, Union
from sqlalchemy.orm import Session

from app.repositories.employee_repository import EmployeeRepository
from app.schemas.maintenance import AutoRulesRunResult
from app.services.rules_service import RulesService
from app.utils.time import now_local, parse_day
from atams.logging import get_logger

logger = get_logger(__name__)


class AutoRulesService:
    def __init__(self, rules_service: Optional[RulesService] = None) -> None:
        self.rules = rules_service or RulesService()
        self.employee_repo = EmployeeRepository()

    def run_for_day(
        self,
        db: Session,
        day: Union[str, date, None] = None,
        now: Optional[datetime] = None
    ) -> AutoRulesRunResult:
        """
        Apply the auto lunch and auto checkout rules to every active employee

        Args:
            db: Database session
            day: Calendar day to close (default: today in the attendance zone)
            now: Sweep time recorded on the AUTO_* incidents

        Returns:
            AutoRulesRunResult: counts of processed and flex-skipped employees
        """
        now = now or now_local()
        target_day = parse_day(day) if day is not None else now.date()

        processed = 0
        skipped_flex = 0
        for employee in self.employee_repo.get_active_employees(db):
            if self.rules.is_exempt(employee):
                skipped_flex += 1
                continue
            self.rules.apply_auto_rules_for_day(db, employee.em_id, target_day, now=now)
            processed += 1

        logger.info(
            f"Auto rules applied for {target_day.isoformat()}",
            extra={'extra_data': {'day': target_day.isoformat(), 'processed': processed, 'skipped_flex': skipped_flex}}
        )

        return AutoRulesRunResult(
            day=target_day,
            processed=processed,
            skipped_flex=skipped_flex,
            message=f"Auto rules applied to {processed} employees for {target_day.isoformat()}"
        )
