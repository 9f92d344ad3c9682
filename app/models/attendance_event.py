"""
Attendance Event Model - Append-only audit trail of workday transitions
"""
from sqlalchemy import Column, BigInteger, String, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import BigIntPK


class AttendanceEvent(Base):
    """Attendance Event model - Table: attendance_events"""
    __tablename__ = "attendance_events"

    ae_id = Column(BigIntPK, primary_key=True, index=True, autoincrement=True)
    ae_workday_id = Column(BigInteger, ForeignKey("workdays.wd_id", ondelete="CASCADE"), nullable=False, index=True)
    ae_employee_id = Column(BigInteger, nullable=False, index=True)
    ae_event_type = Column(String(20), nullable=False)  # checkin, checkout, lunch_start, lunch_end, mini_break_start, mini_break_end
    ae_occurred_at = Column(DateTime, nullable=False)
    ae_status = Column(String(10), nullable=False, default="normal")  # 'normal', 'manual' or 'auto'
    ae_meta = Column(JSON, nullable=True)  # {"lateMin": 5}, {"phase": "before_lunch", "miniBreakId": 3}, ...
    ae_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
