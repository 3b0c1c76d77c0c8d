"""
Table and venue/table link models
"""

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from app.core.db import Base

class Table(Base):
    __tablename__ = "tables"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    icon = Column(String(32), default="")
    level_label = Column(String(100), default="")
    level_color_bg = Column(String(100), default="")
    level_color_text = Column(String(100), default="")
    sort_order = Column(Integer, default=0)
    created_at = Column(String(40))  # tie-breaker for equal sort_order
    capacity = Column(Integer, default=10)


class VenueTable(Base):
    __tablename__ = "venue_tables"

    # Insertion order is kept by the surrogate key
    pk = Column(Integer, primary_key=True, autoincrement=True)
    venue_id = Column(String(64), nullable=False, index=True)
    table_id = Column(String(64), nullable=False, index=True)

    __table_args__ = (UniqueConstraint("venue_id", "table_id", name="uq_venue_table"),)
