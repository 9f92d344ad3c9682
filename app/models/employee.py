"""
Employee Model - Local mirror of the user directory (profile + flex flag)
"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import BigIntPK


class Employee(Base):
    """Employee model - Table: employees"""
    __tablename__ = "employees"

    em_id = Column(BigIntPK, primary_key=True, index=True, autoincrement=True)  # Same id as the SSO user (u_id)
    em_full_name = Column(String(255), nullable=False)
    em_email = Column(String(255), nullable=True, unique=True)
    em_role = Column(String(20), nullable=False, default="EMPLOYEE")  # 'EMPLOYEE' or 'ADMIN'
    em_is_active = Column(Boolean, nullable=False, default=True)
    em_flex_mode = Column(Boolean, nullable=False, default=False)  # Exempt from lateness/break policy
    em_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    em_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
