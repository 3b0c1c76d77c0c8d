"""
Schedule exception models

Rows only exist for dates that deviate from the default "active" state.
"""

from sqlalchemy import Boolean, Column, Integer, String, Text, UniqueConstraint

from app.core.db import Base

class EventException(Base):
    __tablename__ = "event_exceptions"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD, local calendar date
    venue_id = Column(String(64), nullable=False)
    is_cancelled = Column(Boolean, nullable=False, default=False)
    note = Column(Text)

    __table_args__ = (UniqueConstraint("date", "venue_id", name="uq_event_exception"),)


class TableException(Base):
    __tablename__ = "table_exceptions"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    venue_id = Column(String(64), nullable=False)
    table_id = Column(String(64), nullable=False)
    event_date = Column(String(10), nullable=False)
    is_cancelled = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("venue_id", "table_id", "event_date", name="uq_table_exception"),
    )
