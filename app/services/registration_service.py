"""
Registration ledger: sign-ups for a venue occurrence and table
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from app.core.errors import DuplicateRegistration, StoreConflict, ValidationError
from app.services.exception_store import ExceptionStore
from app.services.schedule_service import ScheduleService
from app.services.store import RowStore, eq, gte, in_, lte
from app.services.venue_directory import VenueDirectory

logger = logging.getLogger(__name__)

OTHER_CHOICE = "Other"
TICKER_SCAN_COUNT = 8
TICKER_LIMIT = 20


@dataclass(frozen=True)
class Registration:
    id: str
    user_name: str
    table_id: str
    event_date: str
    venue_id: Optional[str]
    is_first_time: bool
    language_goals: str
    marketing_source: str
    created_at: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TableAvailability:
    table_id: str
    title: str
    capacity: int
    registered: int
    is_cancelled: bool

    @property
    def seats_left(self) -> int:
        return max(self.capacity - self.registered, 0)

    @property
    def is_full(self) -> bool:
        return self.seats_left == 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data.update(seats_left=self.seats_left, is_full=self.is_full)
        return data


def registration_from_row(row) -> Registration:
    return Registration(
        id=row["id"],
        user_name=row["user_name"],
        table_id=row["table_type"],
        event_date=row["event_date"],
        venue_id=row.get("venue_id"),
        is_first_time=bool(row.get("is_first_time")),
        language_goals=row.get("language_goals") or "",
        marketing_source=row.get("marketing_source") or "",
        created_at=row.get("created_at") or "",
    )


def compose_choice(choice: str, other_text: Optional[str] = None) -> str:
    """Answers to the "Other" option are stored as ``Other: <text>``"""
    if choice == OTHER_CHOICE:
        return f"{OTHER_CHOICE}: {(other_text or '').strip()}"
    return choice


def _as_date_str(value) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return (value or "").strip()


class RegistrationService:
    """Records registrations and answers capacity questions.

    Capacity is advisory: ``register`` never checks it. Callers use
    ``count_by_table`` / ``table_availability`` to grey out full tables.
    """

    def __init__(self, store: RowStore, venues: VenueDirectory, exceptions: Optional[ExceptionStore] = None):
        self.store = store
        self.venues = venues
        self.exceptions = exceptions or ExceptionStore(store)

    def register(
        self,
        user_name: str,
        table_id: str,
        event_date,
        venue_id: str,
        is_first_time: bool = False,
        language_goals: str = "",
        marketing_source: str = "",
    ) -> Registration:
        table_id = (table_id or "").strip()
        event_date = _as_date_str(event_date)
        user_name = (user_name or "").strip()

        if not table_id:
            raise ValidationError("Please select a table.", field="table_id")
        if not event_date:
            raise ValidationError("Please select a date.", field="event_date")
        try:
            date.fromisoformat(event_date)
        except ValueError:
            raise ValidationError("Date must be formatted YYYY-MM-DD", field="event_date")
        if not venue_id or self.venues.get_venue(venue_id) is None:
            raise ValidationError("Unknown venue", field="venue_id")
        if not user_name:
            raise ValidationError("Please enter your name.", field="user_name")

        existing = self.store.select(
            "registrations",
            [eq("user_name", user_name), eq("event_date", event_date)],
            limit=1,
        )
        if existing:
            raise DuplicateRegistration(event_date)

        registration = Registration(
            id=str(uuid.uuid4()),
            user_name=user_name,
            table_id=table_id,
            event_date=event_date,
            venue_id=venue_id,
            is_first_time=bool(is_first_time),
            language_goals=language_goals or "",
            marketing_source=marketing_source or "",
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        try:
            self.store.insert("registrations", {
                "id": registration.id,
                "user_name": registration.user_name,
                "table_type": registration.table_id,
                "event_date": registration.event_date,
                "venue_id": registration.venue_id,
                "is_first_time": registration.is_first_time,
                "language_goals": registration.language_goals,
                "marketing_source": registration.marketing_source,
                "created_at": registration.created_at,
            })
        except StoreConflict:
            # Lost the race against a concurrent submission for the same date
            raise DuplicateRegistration(event_date)

        logger.info(f"Registered {user_name!r} for {table_id} on {event_date} at {venue_id}")
        return registration

    def count_by_table(self, event_date, table_ids: Iterable[str] = ()) -> Dict[str, int]:
        """Registrations per table on a date; ``table_ids`` are reported even when zero"""
        counts = {table_id: 0 for table_id in table_ids}
        rows = self.store.select("registrations", [eq("event_date", _as_date_str(event_date))])
        for row in rows:
            table = row.get("table_type")
            if table:
                counts[table] = counts.get(table, 0) + 1
        return counts

    def table_availability(self, venue_id: str, event_date: date) -> List[TableAvailability]:
        venue = self.venues.get_venue(venue_id)
        if venue is None:
            raise ValidationError("Unknown venue", field="venue_id")

        counts = self.count_by_table(event_date, venue.table_ids)
        cancelled = {e.table_id for e in self.exceptions.get_table_exceptions(venue_id, event_date) if e.is_cancelled}
        return [
            TableAvailability(
                table_id=t.id,
                title=t.title,
                capacity=t.capacity,
                registered=counts.get(t.id, 0),
                is_cancelled=t.id in cancelled,
            )
            for t in venue.tables
        ]

    def list_for_date(self, event_date, venue_id: Optional[str] = None) -> List[Registration]:
        """Registrants on a date; rows without a venue (legacy) match any venue"""
        rows = self.store.select(
            "registrations",
            [eq("event_date", _as_date_str(event_date))],
            order_by=("table_type", "created_at"),
        )
        if venue_id:
            rows = [r for r in rows if r.get("venue_id") in (venue_id, None)]
        return [registration_from_row(r) for r in rows]

    def list_in_range(self, start, end) -> List[Registration]:
        rows = self.store.select(
            "registrations",
            [gte("event_date", _as_date_str(start)), lte("event_date", _as_date_str(end))],
            order_by=("event_date", "created_at"),
        )
        return [registration_from_row(r) for r in rows]

    def recent_for_dates(self, dates: Iterable, limit: int = TICKER_LIMIT) -> List[Registration]:
        keys = [_as_date_str(d) for d in dates]
        if not keys:
            return []
        rows = self.store.select("registrations", [in_("event_date", keys)], order_by=("-created_at",), limit=limit)
        return [registration_from_row(r) for r in rows]

    @staticmethod
    def ticker_dates(schedule: ScheduleService) -> List[date]:
        """The next active date of every venue"""
        first_active: Dict[str, date] = {}
        for occ in schedule.get_upcoming_events(None, TICKER_SCAN_COUNT):
            if not occ.is_cancelled and occ.venue_id not in first_active:
                first_active[occ.venue_id] = occ.date
        return list(first_active.values())
