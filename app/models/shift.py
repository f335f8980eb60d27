"""
Shift model: overrides the policy's work start/end for a team or the whole company
"""
from sqlalchemy import Column, Integer, String, Time, Boolean, DateTime
from sqlalchemy.sql import func
from app.db.base import Base


class Shift(Base):
    __tablename__ = "shifts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    team_id = Column(Integer, nullable=True, index=True)  # NULL = company-wide default shift
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)
