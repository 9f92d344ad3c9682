"""
Incident Model - Policy violations and notices awaiting notification
"""
from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import BigIntPK


class Incident(Base):
    """Incident model - Table: incidents (one per workday and code)"""
    __tablename__ = "incidents"
    __table_args__ = (
        UniqueConstraint("in_workday_id", "in_code", name="uq_incidents_workday_code"),
    )

    in_id = Column(BigIntPK, primary_key=True, index=True, autoincrement=True)
    in_workday_id = Column(BigInteger, ForeignKey("workdays.wd_id", ondelete="CASCADE"), nullable=False, index=True)
    in_employee_id = Column(BigInteger, nullable=False, index=True)
    in_code = Column(String(40), nullable=False)
    in_message = Column(String(500), nullable=False)
    in_severity = Column(String(10), nullable=False, default="warn")  # 'info' or 'warn'
    in_occurred_at = Column(DateTime, nullable=False)
    in_notify_after = Column(DateTime, nullable=False, index=True)
    in_notified_at = Column(DateTime, nullable=True)  # Set by the notifier sweep
    in_channel = Column(String(10), nullable=False, default="both")
    in_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
