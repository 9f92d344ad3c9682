"""
Notify Service - Delivers incidents once their notify_after time has passed
"""
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.incident import Incident
from app.repositories.incident_repository import IncidentRepository
from app.schemas.maintenance import NotifyRunResult
from app.utils.time import now_local
from atams.logging import get_logger

logger = get_logger(__name__)

IncidentSender = Callable[[Incident], None]


def log_sender(incident: Incident) -> None:
    """Default channel: a structured log line per incident"""
    logger.info(
        f"Incident {incident.in_code} for employee {incident.in_employee_id}: {incident.in_message}",
        extra={'extra_data': {
            'incident_id': incident.in_id,
            'employee_id': incident.in_employee_id,
            'code': incident.in_code,
            'severity': incident.in_severity,
            'channel': incident.in_channel
        }}
    )


class NotifyService:
    def __init__(self, sender: Optional[IncidentSender] = None) -> None:
        self.repo = IncidentRepository()
        self.sender = sender or log_sender

    def dispatch_due(
        self,
        db: Session,
        now: Optional[datetime] = None,
        limit: int = settings.NOTIFY_BATCH_SIZE
    ) -> NotifyRunResult:
        """
        Send every unsent incident whose notify_after is due

        An incident is marked notified only after its sender returned, so a
        failing sender leaves it for the next sweep.

        Returns:
            NotifyRunResult: number of incidents sent
        """
        now = now or now_local()
        incidents = self.repo.get_due_incidents(db, now, limit=limit)

        sent = 0
        for incident in incidents:
            self.sender(incident)
            self.repo.mark_notified(db, incident, now)
            sent += 1

        if sent:
            logger.info(
                f"Sent {sent} incident notifications",
                extra={'extra_data': {'sent_count': sent}}
            )

        return NotifyRunResult(
            sent_count=sent,
            message=f"Sent {sent} incident notifications"
        )
