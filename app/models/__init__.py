"""
Database models package
"""

from .venue import Venue
from .table import Table, VenueTable
from .exception import EventException, TableException
from .registration import Registration
from .community import Comment, GalleryPhoto

__all__ = [
    "Venue",
    "Table",
    "VenueTable",
    "EventException",
    "TableException",
    "Registration",
    "Comment",
    "GalleryPhoto",
]
