"""
Pydantic schemas package
"""

from .common import *
from .venue import *
from .schedule import *
from .registration import *
from .community import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "TableBase",
    "TableCreate",
    "TableResponse",
    "VenueCreate",
    "VenueResponse",
    "OccurrenceResponse",
    "ScheduleResponse",
    "VenueExceptionUpdate",
    "TableExceptionUpdate",
    "RegistrationCreate",
    "LoginRequest",
    "CommentCreate",
    "PhotoCreate",
]
