"""
Registration model
"""

from sqlalchemy import Boolean, Column, String, Text, UniqueConstraint

from app.core.db import Base

class Registration(Base):
    __tablename__ = "registrations"

    id = Column(String(36), primary_key=True)
    user_name = Column(String(255), nullable=False)
    table_type = Column(String(64), nullable=False)
    event_date = Column(String(10), nullable=False, index=True)
    venue_id = Column(String(64))  # null on legacy rows
    is_first_time = Column(Boolean, default=False)
    language_goals = Column(Text, default="")
    marketing_source = Column(String(255), default="")
    created_at = Column(String(40), nullable=False)

    __table_args__ = (UniqueConstraint("user_name", "event_date", name="uq_registration_user_date"),)
