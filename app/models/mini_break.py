"""
Mini-Break Model - Short pauses tracked apart from lunch
"""
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import BigIntPK


class MiniBreak(Base):
    """Mini-Break model - Table: mini_breaks"""
    __tablename__ = "mini_breaks"

    mb_id = Column(BigIntPK, primary_key=True, index=True, autoincrement=True)
    mb_workday_id = Column(BigInteger, ForeignKey("workdays.wd_id", ondelete="CASCADE"), nullable=False, index=True)
    mb_employee_id = Column(BigInteger, nullable=False, index=True)
    mb_start_at = Column(DateTime, nullable=False)
    mb_end_at = Column(DateTime, nullable=True)  # NULL while the break is running
    mb_duration_minutes = Column(Integer, nullable=True)
    mb_exceeded_minutes = Column(Integer, nullable=True)
    mb_status = Column(String(10), nullable=False, default="normal")
    mb_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    mb_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
