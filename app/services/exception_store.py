"""
Venue-level and table-level schedule exceptions.

Absence of a row always means the default state: the venue meets and every
table is open. Rows are keyed by (venue, date) and (venue, table, date).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from app.core.errors import StoreError
from app.services.store import RowStore, eq, in_

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VenueException:
    venue_id: str
    date: date
    is_cancelled: bool
    note: Optional[str] = None


@dataclass(frozen=True)
class TableException:
    venue_id: str
    table_id: str
    date: date
    is_cancelled: bool = True


def _venue_exception_from_row(row) -> VenueException:
    return VenueException(
        venue_id=row["venue_id"],
        date=date.fromisoformat(row["date"]),
        is_cancelled=bool(row.get("is_cancelled")),
        note=row.get("note"),
    )


def _table_exception_from_row(row) -> TableException:
    return TableException(
        venue_id=row["venue_id"],
        table_id=row["table_id"],
        date=date.fromisoformat(row["event_date"]),
        is_cancelled=bool(row.get("is_cancelled")),
    )


class ExceptionStore:
    def __init__(self, store: RowStore):
        self.store = store

    # -------- venue exceptions --------

    def get_venue_exceptions(self, dates: Iterable[date]) -> List[VenueException]:
        """Fetch every venue exception on any of ``dates`` in one query"""
        keys = sorted({d.isoformat() for d in dates})
        if not keys:
            return []
        rows = self.store.select("event_exceptions", [in_("date", keys)])
        return [_venue_exception_from_row(r) for r in rows]

    def upsert_venue_exception(
        self,
        venue_id: str,
        event_date: date,
        is_cancelled: bool,
        note: Optional[str] = None,
    ) -> VenueException:
        self.store.upsert("event_exceptions", {
            "date": event_date.isoformat(),
            "venue_id": venue_id,
            "is_cancelled": is_cancelled,
            "note": note,
        })
        logger.info(f"Venue {venue_id} on {event_date}: cancelled={is_cancelled} note={note!r}")
        return VenueException(venue_id, event_date, is_cancelled, note)

    def clear_venue_exception(self, venue_id: str, event_date: date) -> bool:
        """Restore the default state; returns False when there was nothing to clear"""
        removed = self.store.delete("event_exceptions", {"date": event_date.isoformat(), "venue_id": venue_id})
        return removed > 0

    # -------- table exceptions --------

    def get_table_exceptions(self, venue_id: str, event_date: date) -> List[TableException]:
        try:
            rows = self.store.select(
                "table_exceptions",
                [eq("venue_id", venue_id), eq("event_date", event_date.isoformat())],
            )
        except StoreError as e:
            logger.error(f"Error fetching table exceptions for {venue_id} on {event_date}: {e}")
            return []
        return [_table_exception_from_row(r) for r in rows]

    def set_table_exception(self, venue_id: str, table_id: str, event_date: date, is_cancelled: bool) -> None:
        key = {"venue_id": venue_id, "table_id": table_id, "event_date": event_date.isoformat()}
        if not is_cancelled:
            # Back to the default: available tables have no row
            self.store.delete("table_exceptions", key)
        else:
            self.store.upsert("table_exceptions", {**key, "is_cancelled": True})
