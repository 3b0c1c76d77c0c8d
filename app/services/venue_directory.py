"""
Venue and table catalog backed by the row store
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.errors import NotFoundError, ValidationError
from app.services.store import RowStore

logger = logging.getLogger(__name__)

DEFAULT_TABLE_CAPACITY = 10


@dataclass(frozen=True)
class TableInfo:
    id: str
    title: str
    description: str = ""
    icon: str = ""
    level_label: str = ""
    level_color_bg: str = ""
    level_color_text: str = ""
    sort_order: int = 0
    capacity: int = DEFAULT_TABLE_CAPACITY


@dataclass(frozen=True)
class TableWithVenues:
    table: TableInfo
    venue_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Venue:
    id: str
    name: str
    weekday: int  # 0=Sunday ... 6=Saturday
    address: str = ""
    google_maps_link: Optional[str] = None
    time: str = ""
    fee: str = ""
    fee_note: str = ""
    description: str = ""
    important_info: Tuple[str, ...] = ()
    map_type: str = "none"
    sort_order: int = 0
    tables: Tuple[TableInfo, ...] = field(default=())

    @property
    def table_ids(self) -> List[str]:
        return [t.id for t in self.tables]


# -------- field-name translation --------

def venue_to_row(venue: Venue) -> Dict[str, Any]:
    return {
        "id": venue.id,
        "name": venue.name,
        "address": venue.address,
        "google_maps_link": venue.google_maps_link,
        "day_of_week": venue.weekday,
        "time": venue.time,
        "fee": venue.fee,
        "fee_note": venue.fee_note,
        "description": venue.description,
        "important_info": list(venue.important_info),
        "map_type": venue.map_type,
        "sort_order": venue.sort_order,
    }


def venue_from_row(row: Dict[str, Any], tables: Sequence[TableInfo] = ()) -> Venue:
    return Venue(
        id=row["id"],
        name=row["name"],
        weekday=int(row["day_of_week"]),
        address=row.get("address") or "",
        google_maps_link=row.get("google_maps_link"),
        time=row.get("time") or "",
        fee=row.get("fee") or "",
        fee_note=row.get("fee_note") or "",
        description=row.get("description") or "",
        important_info=tuple(row.get("important_info") or ()),
        map_type=row.get("map_type") or "none",
        sort_order=row.get("sort_order") or 0,
        tables=tuple(tables),
    )


def table_to_row(table: TableInfo) -> Dict[str, Any]:
    return {
        "id": table.id,
        "title": table.title,
        "description": table.description,
        "icon": table.icon,
        "level_label": table.level_label,
        "level_color_bg": table.level_color_bg,
        "level_color_text": table.level_color_text,
        "sort_order": table.sort_order,
        "capacity": table.capacity,
    }


def table_from_row(row: Dict[str, Any]) -> TableInfo:
    capacity = row.get("capacity")
    return TableInfo(
        id=row["id"],
        title=row.get("title") or row["id"],
        description=row.get("description") or "",
        icon=row.get("icon") or "",
        level_label=row.get("level_label") or "",
        level_color_bg=row.get("level_color_bg") or "",
        level_color_text=row.get("level_color_text") or "",
        sort_order=row.get("sort_order") or 0,
        capacity=DEFAULT_TABLE_CAPACITY if capacity is None else int(capacity),
    )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogCache:
    """Read-through cache for the venue catalog.

    A TTL of 0 disables caching. Admin mutations call ``invalidate``.
    """

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds
        self._venues: Optional[Tuple[Venue, ...]] = None
        self._loaded_at = 0.0

    def get(self) -> Optional[Tuple[Venue, ...]]:
        if self.ttl_seconds <= 0 or self._venues is None:
            return None
        if time.monotonic() - self._loaded_at > self.ttl_seconds:
            self._venues = None
            return None
        return self._venues

    def put(self, venues: Sequence[Venue]) -> None:
        if self.ttl_seconds <= 0:
            return
        self._venues = tuple(venues)
        self._loaded_at = time.monotonic()

    def invalidate(self) -> None:
        self._venues = None


class VenueDirectory:
    """Loads venues joined with their tables; passthrough CRUD for admin"""

    def __init__(self, store: RowStore, cache: Optional[CatalogCache] = None):
        self.store = store
        self.cache = cache

    # -------- reads --------

    def list_venues(self) -> List[Venue]:
        if self.cache is not None:
            cached = self.cache.get()
            if cached is not None:
                return list(cached)

        venue_rows = self.store.select("venues", order_by=("sort_order", "created_at"))
        links = self.store.select("venue_tables")
        tables = {row["id"]: table_from_row(row) for row in self.store.select("tables")}

        venues = []
        for row in venue_rows:
            if row.get("day_of_week") not in range(7):
                logger.warning(f"Skipping venue {row.get('id')}: invalid day_of_week {row.get('day_of_week')!r}")
                continue
            linked = [tables[l["table_id"]] for l in links if l["venue_id"] == row["id"] and l["table_id"] in tables]
            linked.sort(key=lambda t: t.sort_order)
            venues.append(venue_from_row(row, linked))

        if self.cache is not None:
            self.cache.put(venues)
        return venues

    def get_venue(self, venue_id: str) -> Optional[Venue]:
        return next((v for v in self.list_venues() if v.id == venue_id), None)

    def list_tables(self) -> List[TableWithVenues]:
        table_rows = self.store.select("tables", order_by=("sort_order", "created_at"))
        links = self.store.select("venue_tables")
        return [
            TableWithVenues(
                table=table_from_row(row),
                venue_ids=tuple(l["venue_id"] for l in links if l["table_id"] == row["id"]),
            )
            for row in table_rows
        ]

    # -------- venue mutations --------

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    @staticmethod
    def _validate_venue(venue: Venue) -> None:
        if not venue.id.strip():
            raise ValidationError("Venue id is required", field="id")
        if not venue.name.strip():
            raise ValidationError("Venue name is required", field="name")
        if venue.weekday not in range(7):
            raise ValidationError("Weekday must be between 0 (Sunday) and 6 (Saturday)", field="weekday")

    def create_venue(self, venue: Venue) -> Venue:
        self._validate_venue(venue)
        self.store.insert("venues", {**venue_to_row(venue), "created_at": _now_iso()})
        self._invalidate()
        logger.info(f"Created venue {venue.id}")
        return replace(venue, tables=())

    def update_venue(self, venue: Venue) -> Venue:
        self._validate_venue(venue)
        values = venue_to_row(venue)
        values.pop("id")
        if not self.store.update("venues", {"id": venue.id}, values):
            raise NotFoundError("Venue")
        self._invalidate()
        return venue

    def delete_venue(self, venue_id: str) -> None:
        # Links, exceptions and registrations for the venue are left in place
        if not self.store.delete("venues", {"id": venue_id}):
            raise NotFoundError("Venue")
        self._invalidate()
        logger.info(f"Deleted venue {venue_id}")

    # -------- table mutations --------

    def _link(self, table_id: str, venue_ids: Sequence[str]) -> None:
        for venue_id in dict.fromkeys(venue_ids):
            self.store.insert("venue_tables", {"venue_id": venue_id, "table_id": table_id})

    @staticmethod
    def _validate_table(table: TableInfo) -> None:
        if not table.id.strip():
            raise ValidationError("Table id is required", field="id")
        if not table.title.strip():
            raise ValidationError("Table title is required", field="title")
        if table.capacity < 0:
            raise ValidationError("Capacity cannot be negative", field="capacity")

    def create_table(self, table: TableInfo, venue_ids: Sequence[str] = ()) -> TableWithVenues:
        self._validate_table(table)
        self.store.insert("tables", {**table_to_row(table), "created_at": _now_iso()})
        self._link(table.id, venue_ids)
        self._invalidate()
        return TableWithVenues(table=table, venue_ids=tuple(dict.fromkeys(venue_ids)))

    def update_table(self, original_id: str, table: TableInfo, venue_ids: Sequence[str] = ()) -> TableWithVenues:
        self._validate_table(table)
        if not self.store.update("tables", {"id": original_id}, table_to_row(table)):
            raise NotFoundError("Table")

        # Links are replaced wholesale
        self.store.delete("venue_tables", {"table_id": original_id})
        if table.id != original_id:
            self.store.delete("venue_tables", {"table_id": table.id})
        self._link(table.id, venue_ids)
        self._invalidate()
        return TableWithVenues(table=table, venue_ids=tuple(dict.fromkeys(venue_ids)))

    def delete_table(self, table_id: str) -> None:
        self.store.delete("venue_tables", {"table_id": table_id})
        if not self.store.delete("tables", {"id": table_id}):
            raise NotFoundError("Table")
        self._invalidate()
