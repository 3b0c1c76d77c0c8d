"""
Registration and admin login schemas
"""

import datetime
from typing import Optional
from pydantic import BaseModel

class RegistrationCreate(BaseModel):
    """Sign-up form payload"""
    user_name: str
    table_id: str = ""
    event_date: Optional[datetime.date] = None
    venue_id: str
    is_first_time: bool = False
    language: str = ""
    other_language: Optional[str] = None
    marketing_source: str = ""
    other_source: Optional[str] = None

class LoginRequest(BaseModel):
    password: str
