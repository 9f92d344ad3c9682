"""
Attendance Endpoints - Employee check-in/out, lunch and mini-break transitions
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.db.session import get_db
from app.services.rules_service import RulesService
from app.services.timeline_service import TimelineService
from app.schemas import (
    TransitionResult,
    CheckinResult,
    CheckoutResult,
    CheckoutRequest,
    LunchResult,
    MiniBreakStartResult,
    MiniBreakEndResult,
    DayTimeline,
    DataResponse
)
from app.api.deps import require_auth, require_min_role_level, EMPLOYEE_ROLE_LEVEL
from app.core.config import settings
from app.utils.time import now_local
from atams.encryption import encrypt_response_data
from atams.exceptions import BadRequestException

router = APIRouter()
rules_service = RulesService()
timeline_service = TimelineService()


def ensure_accepted(result: TransitionResult) -> None:
    """Turn a policy rejection into a 400 carrying its rejection code"""
    if not result.ok:
        raise BadRequestException(result.error, details={"code": result.code})


@router.post(
    "/checkin",
    response_model=DataResponse[CheckinResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(EMPLOYEE_ROLE_LEVEL))]
)
async def check_in(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Check in for today

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Response:**
    - late_min and a compensation notice when arriving after 09:05

    **Errors:**
    - 400 ALREADY_CHECKED_IN
    """
    result = rules_service.check_in(db, current_user["user_id"], now_local())
    ensure_accepted(result)

    return DataResponse(
        success=True,
        message="Checked in successfully",
        data=result
    )


@router.post(
    "/checkout",
    response_model=DataResponse[CheckoutResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(EMPLOYEE_ROLE_LEVEL))]
)
async def check_out(
    request: Optional[CheckoutRequest] = None,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Check out for today

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Body (optional):**
    - manual_checkin_time: HH:MM, required when there was no check-in today

    **Errors:**
    - 400 ALREADY_CHECKED_OUT, MANUAL_CHECKIN_REQUIRED
    """
    manual_time = request.manual_checkin_time if request else None
    result = rules_service.check_out(
        db, current_user["user_id"], now_local(), manual_checkin_time=manual_time
    )
    ensure_accepted(result)

    return DataResponse(
        success=True,
        message="Checked out successfully",
        data=result
    )


@router.post(
    "/lunch/start",
    response_model=DataResponse[LunchResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(EMPLOYEE_ROLE_LEVEL))]
)
async def start_lunch(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Start the lunch break

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Errors:**
    - 400 MUST_CHECK_IN_FIRST, LUNCH_ALREADY_STARTED, LUNCH_TOO_EARLY, LUNCH_TOO_LATE
    """
    result = rules_service.start_lunch(db, current_user["user_id"], now_local())
    ensure_accepted(result)

    return DataResponse(
        success=True,
        message="Lunch started",
        data=result
    )


@router.post(
    "/lunch/end",
    response_model=DataResponse[LunchResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(EMPLOYEE_ROLE_LEVEL))]
)
async def end_lunch(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    End the lunch break

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Errors:**
    - 400 LUNCH_NOT_STARTED, LUNCH_ALREADY_ENDED
    """
    result = rules_service.end_lunch(db, current_user["user_id"], now_local())
    ensure_accepted(result)

    return DataResponse(
        success=True,
        message="Lunch ended",
        data=result
    )


@router.post(
    "/mini/start",
    response_model=DataResponse[MiniBreakStartResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(EMPLOYEE_ROLE_LEVEL))]
)
async def start_mini_break(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Start a mini-break

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Limits:**
    - 2 before lunch, then 1 after (2 if fewer were used before), 3 per day
    - A 4th or later mini-break is allowed but raises MINI_BREAK_OVER_3

    **Errors:**
    - 400 MUST_CHECK_IN_FIRST, MINI_BREAK_LIMIT_BEFORE_LUNCH,
      MINI_BREAK_LIMIT_AFTER_LUNCH, MINI_BREAK_ALREADY_RUNNING
    """
    result = rules_service.start_mini_break(db, current_user["user_id"], now_local())
    ensure_accepted(result)

    return DataResponse(
        success=True,
        message="Mini-break started",
        data=result
    )


@router.post(
    "/mini/end",
    response_model=DataResponse[MiniBreakEndResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(EMPLOYEE_ROLE_LEVEL))]
)
async def end_mini_break(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    End the running mini-break

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Errors:**
    - 400 NO_WORKDAY, NO_MINI_BREAK_RUNNING
    """
    result = rules_service.end_mini_break(db, current_user["user_id"], now_local())
    ensure_accepted(result)

    return DataResponse(
        success=True,
        message="Mini-break ended",
        data=result
    )


@router.get(
    "/me/day",
    response_model=DataResponse[DayTimeline],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(EMPLOYEE_ROLE_LEVEL))]
)
async def get_my_day(
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format (default: today)"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get current user's timeline for a day

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Query Parameters:**
    - date: YYYY-MM-DD format (optional, default today)
    """
    day = date or now_local().date()
    timeline = timeline_service.get_day_timeline(db, current_user["user_id"], day)

    response = DataResponse(
        success=True,
        message="Day timeline retrieved successfully",
        data=timeline
    )

    return encrypt_response_data(response, settings)
