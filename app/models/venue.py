"""
Venue model
"""

from sqlalchemy import Column, Integer, String, Text, JSON

from app.core.db import Base

class Venue(Base):
    __tablename__ = "venues"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False, default="")
    google_maps_link = Column(String(1000))
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday ... 6=Saturday
    time = Column(String(100), default="")
    fee = Column(String(100), default="")
    fee_note = Column(String(500), default="")
    description = Column(Text, default="")
    important_info = Column(JSON, default=list)
    map_type = Column(String(32), default="none")
    sort_order = Column(Integer, default=0)
    created_at = Column(String(40))  # tie-breaker for equal sort_order
