"""
Comment and gallery photo models
"""

from sqlalchemy import Column, String, Text

from app.core.db import Base

class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True)
    user_name = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    attended_date = Column(String(10))
    table_type = Column(String(64))
    comment_type = Column(String(64), default="Thank You Note")
    created_at = Column(String(40), nullable=False)


class GalleryPhoto(Base):
    __tablename__ = "gallery_photos"

    id = Column(String(36), primary_key=True)
    url = Column(String(1000), nullable=False)
    date = Column(String(10), nullable=False)
    caption = Column(Text, default="")
