"""
Comment and gallery schemas
"""

import datetime
from typing import Optional
from pydantic import BaseModel

class CommentCreate(BaseModel):
    user_name: str
    message: str
    attended_date: Optional[datetime.date] = None
    table_type: Optional[str] = None
    comment_type: str = "Thank You Note"

class PhotoCreate(BaseModel):
    url: str
    date: datetime.date
    caption: str = ""
