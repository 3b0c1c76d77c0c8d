"""
Venue and table schemas
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from app.services.venue_directory import DEFAULT_TABLE_CAPACITY, TableInfo, Venue

class TableBase(BaseModel):
    """Table fields shared by input and output"""
    id: str
    title: str
    description: str = ""
    icon: str = ""
    level_label: str = ""
    level_color_bg: str = ""
    level_color_text: str = ""
    sort_order: int = 0
    capacity: int = Field(DEFAULT_TABLE_CAPACITY, ge=0)

    class Config:
        from_attributes = True

    def to_domain(self) -> TableInfo:
        return TableInfo(**self.model_dump(exclude={"venue_ids"}))

class TableCreate(TableBase):
    """Table plus the venues it is offered at"""
    venue_ids: List[str] = []

class TableResponse(TableBase):
    venue_ids: List[str] = []

class VenueBase(BaseModel):
    id: str
    name: str
    weekday: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    address: str = ""
    google_maps_link: Optional[str] = None
    time: str = ""
    fee: str = ""
    fee_note: str = ""
    description: str = ""
    important_info: List[str] = []
    map_type: str = "none"
    sort_order: int = 0

    class Config:
        from_attributes = True

class VenueCreate(VenueBase):
    def to_domain(self) -> Venue:
        data = self.model_dump()
        data["important_info"] = tuple(data["important_info"])
        return Venue(**data)

class VenueResponse(VenueBase):
    table_ids: List[str] = []
    tables: List[TableBase] = []
