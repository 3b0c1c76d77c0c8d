"""
Schedule and exception schemas
"""

import datetime
from typing import List, Optional
from pydantic import BaseModel

class OccurrenceResponse(BaseModel):
    """One concrete meetup date at a venue"""
    date: datetime.date
    venue_id: str
    venue_name: str
    day_name: str
    is_cancelled: bool
    note: Optional[str] = None
    is_next: bool = False

    class Config:
        from_attributes = True

class ScheduleResponse(BaseModel):
    occurrences: List[OccurrenceResponse]
    exceptions_applied: bool

    class Config:
        from_attributes = True

class VenueExceptionUpdate(BaseModel):
    """Cancel an occurrence or attach a note to it"""
    is_cancelled: bool = True
    note: Optional[str] = None

class TableExceptionUpdate(BaseModel):
    is_cancelled: bool
