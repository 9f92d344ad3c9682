"""
Admin Endpoints - Live overview, employee timelines and incident history
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.db.session import get_db
from app.services.timeline_service import TimelineService
from app.schemas import DayTimeline, Incident, LiveOverview, DataResponse, PaginationResponse
from app.api.deps import require_min_role_level, ADMIN_ROLE_LEVEL
from app.core.config import settings
from app.utils.time import now_local, parse_day
from atams.encryption import encrypt_response_data

router = APIRouter()
timeline_service = TimelineService()


@router.get(
    "/live",
    response_model=DataResponse[LiveOverview],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(ADMIN_ROLE_LEVEL))]
)
async def get_live_overview(
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Live attendance board (Admin only)

    **Authentication:**
    - Requires role level >= 50 (Admin or above)

    **Groups:**
    - not_checked_in, active, lunch, mini_break, checked_out
    """
    day = date or now_local().date()
    overview = timeline_service.get_live_overview(db, day)

    response = DataResponse(
        success=True,
        message="Live overview retrieved successfully",
        data=overview
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/employees/{employee_id}/timeline",
    response_model=DataResponse[DayTimeline],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(ADMIN_ROLE_LEVEL))]
)
async def get_employee_timeline(
    employee_id: int,
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Get an employee's timeline for a day (Admin only)

    **Authentication:**
    - Requires role level >= 50 (Admin or above)

    **Errors:**
    - 404: Employee not found
    """
    day = date or now_local().date()
    timeline = timeline_service.get_day_timeline(db, employee_id, day)

    response = DataResponse(
        success=True,
        message="Employee timeline retrieved successfully",
        data=timeline
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/employees/{employee_id}/incidents",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(ADMIN_ROLE_LEVEL))]
)
async def get_employee_incidents(
    employee_id: int,
    date_from: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    severity: Optional[str] = Query(None, pattern="^(info|warn)$", description="Filter by severity"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db)
):
    """
    Get an employee's incidents, newest first (Admin only)

    **Authentication:**
    - Requires role level >= 50 (Admin or above)

    **Query Parameters:**
    - date_from/date_to: Date range filter (YYYY-MM-DD)
    - severity: info or warn
    - limit: Max records (1-1000, default 100)
    - offset: Skip records (default 0)
    """
    parsed_date_from = parse_day(date_from) if date_from else None
    parsed_date_to = parse_day(date_to) if date_to else None

    incidents = timeline_service.list_incidents(
        db, employee_id, parsed_date_from, parsed_date_to, severity
    )
    total = len(incidents)

    response = PaginationResponse[Incident](
        success=True,
        message="Incidents retrieved successfully",
        data=incidents[offset:offset + limit],
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)
