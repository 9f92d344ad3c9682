"""
Maintenance Endpoints - Scheduled attendance sweeps
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.db.session import get_db
from app.services.auto_rules_service import AutoRulesService
from app.services.notify_service import NotifyService
from app.schemas import AutoRulesRunResult, NotifyRunResult, DataResponse
from app.api.deps import require_min_role_level, ADMIN_ROLE_LEVEL
from app.core.config import settings

router = APIRouter()
auto_rules_service = AutoRulesService()
notify_service = NotifyService()


@router.post(
    "/auto-rules",
    response_model=DataResponse[AutoRulesRunResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(ADMIN_ROLE_LEVEL))]
)
async def run_auto_rules(
    date: Optional[str] = Query(None, description="Day to close in YYYY-MM-DD format (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Apply auto lunch and auto checkout to every active employee

    **Authorization:**
    - Requires role level >= 50 (Admin or above)

    **Use case:**
    - Called by the external scheduler every 5 minutes during 17:00 (cron */5 17 * * *)
    - Safe to repeat: existing values are kept and incidents are not duplicated
    """
    result = auto_rules_service.run_for_day(db, date)

    return DataResponse(
        success=True,
        message="Auto rules applied",
        data=result
    )


@router.post(
    "/notify-incidents",
    response_model=DataResponse[NotifyRunResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(ADMIN_ROLE_LEVEL))]
)
async def notify_incidents(
    limit: int = Query(settings.NOTIFY_BATCH_SIZE, ge=1, le=500, description="Maximum incidents to send"),
    db: Session = Depends(get_db)
):
    """
    Send incidents whose notify_after time has passed

    **Authorization:**
    - Requires role level >= 50 (Admin or above)

    **Use case:**
    - Called by the external scheduler every 10 minutes after 20:00
    """
    result = notify_service.dispatch_due(db, limit=limit)

    return DataResponse(
        success=True,
        message="Incident notifications dispatched",
        data=result
    )
