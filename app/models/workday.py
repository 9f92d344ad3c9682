"""
Workday Model - One attendance record per employee per calendar day
"""
from datetime import time

from sqlalchemy import Column, BigInteger, Integer, String, Date, DateTime, Time, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import BigIntPK


class Workday(Base):
    """Workday model - Table: workdays"""
    __tablename__ = "workdays"
    __table_args__ = (
        UniqueConstraint("wd_employee_id", "wd_day_date", name="uq_workdays_employee_day"),
    )

    wd_id = Column(BigIntPK, primary_key=True, index=True, autoincrement=True)
    wd_employee_id = Column(BigInteger, ForeignKey("employees.em_id"), nullable=False, index=True)
    wd_day_date = Column(Date, nullable=False, index=True)
    wd_checkin_at = Column(DateTime, nullable=True)
    wd_checkin_status = Column(String(10), nullable=True)  # 'normal', 'manual' or 'auto'
    wd_checkout_at = Column(DateTime, nullable=True)
    wd_checkout_status = Column(String(10), nullable=True)
    wd_lunch_start = Column(DateTime, nullable=True)
    wd_lunch_end = Column(DateTime, nullable=True)
    wd_lunch_status = Column(String(10), nullable=True)
    wd_late_minutes = Column(Integer, nullable=False, default=0)
    wd_break_total_minutes = Column(Integer, nullable=False, default=0)
    wd_compensation_minutes = Column(Integer, nullable=False, default=0)
    wd_compensation_work_minutes = Column(Integer, nullable=False, default=0)
    wd_scheduled_start = Column(Time, nullable=False, default=time(9, 0, 0))
    wd_scheduled_end = Column(Time, nullable=False, default=time(17, 0, 0))
    wd_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    wd_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
