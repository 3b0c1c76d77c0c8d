"""
Recurring event schedule.

Every venue meets on one fixed weekday. Concrete occurrences are generated
on demand and then overlaid with the persisted venue exceptions
(cancellations and notes). Generation is pure; only the overlay touches the
store, and a failed overlay degrades to the default "active" schedule
instead of failing the request.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.errors import StoreError, ValidationError
from app.services.exception_store import ExceptionStore, VenueException
from app.services.venue_directory import Venue, VenueDirectory

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

DEFAULT_UPCOMING_COUNT = 4
NEXT_AVAILABLE_WINDOW = 5


def weekday_of(day: date) -> int:
    """Weekday with 0=Sunday, matching the venue ``weekday`` field"""
    return (day.weekday() + 1) % 7


def event_timezone() -> Optional[tzinfo]:
    return ZoneInfo(settings.EVENT_TIMEZONE) if settings.EVENT_TIMEZONE else None


def local_today(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of ``now`` in the event timezone.

    With no timezone configured the process local time is used. The date is
    always taken from local components; converting through UTC would move
    the date back a day for early-morning times east of Greenwich.
    """
    if tz is None:
        tz = event_timezone()
    if now is None:
        now = datetime.now(tz) if tz is not None else datetime.now()
    elif tz is not None:
        now = now.astimezone(tz)
    elif now.tzinfo is not None:
        now = now.astimezone()
    return now.date()


@dataclass(frozen=True)
class EventOccurrence:
    date: date
    venue_id: str
    venue_name: str
    day_name: str
    is_cancelled: bool = False
    note: Optional[str] = None
    is_next: bool = False

    @property
    def date_str(self) -> str:
        return self.date.isoformat()


@dataclass(frozen=True)
class ScheduleResult:
    occurrences: List[EventOccurrence]
    # False when the exception lookup failed and defaults are shown
    exceptions_applied: bool = True


# -------- pure generation --------

def base_occurrence(venue: Venue, day: date) -> EventOccurrence:
    return EventOccurrence(
        date=day,
        venue_id=venue.id,
        venue_name=venue.name,
        day_name=DAY_NAMES[venue.weekday],
    )


def apply_exception(occurrence: EventOccurrence, exception: Optional[VenueException]) -> EventOccurrence:
    """Resolve an occurrence against its exception row, if any"""
    if exception is None:
        return replace(occurrence, is_cancelled=False, note=None)
    return replace(occurrence, is_cancelled=exception.is_cancelled, note=exception.note)


def generate_upcoming(venue: Venue, start: date, count: int) -> List[EventOccurrence]:
    """The first ``count`` dates on or after ``start`` falling on the venue's weekday"""
    first = start + timedelta(days=(venue.weekday - weekday_of(start)) % 7)
    return [base_occurrence(venue, first + timedelta(weeks=i)) for i in range(count)]


def generate_month(venues: Sequence[Venue], year: int, month: int) -> List[EventOccurrence]:
    """Occurrences in a calendar month (``month`` is 1-12), by day then venue order"""
    occurrences = []
    for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
        day = date(year, month, day_number)
        weekday = weekday_of(day)
        occurrences.extend(base_occurrence(v, day) for v in venues if v.weekday == weekday)
    return occurrences


def mark_next(occurrences: Iterable[EventOccurrence]) -> List[EventOccurrence]:
    """Flag the first active occurrence of each venue; input must be date ordered"""
    seen = set()
    marked = []
    for occ in occurrences:
        if not occ.is_cancelled and occ.venue_id not in seen:
            seen.add(occ.venue_id)
            occ = replace(occ, is_next=True)
        marked.append(occ)
    return marked


class ScheduleService:
    """Resolves the recurring schedule against the stored exceptions"""

    def __init__(
        self,
        venues: VenueDirectory,
        exceptions: ExceptionStore,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.venues = venues
        self.exceptions = exceptions
        self.clock = clock or local_today

    def _overlay(self, occurrences: List[EventOccurrence]) -> ScheduleResult:
        if not occurrences:
            return ScheduleResult([], True)
        try:
            rows = self.exceptions.get_venue_exceptions(o.date for o in occurrences)
        except StoreError as e:
            logger.warning(f"Showing default schedule, exception lookup failed: {e}")
            return ScheduleResult([apply_exception(o, None) for o in occurrences], False)

        by_key: Dict[Tuple[date, str], VenueException] = {(r.date, r.venue_id): r for r in rows}
        return ScheduleResult([apply_exception(o, by_key.get((o.date, o.venue_id))) for o in occurrences], True)

    def upcoming(self, venue_id: Optional[str] = None, count: int = DEFAULT_UPCOMING_COUNT) -> ScheduleResult:
        if count < 0:
            raise ValidationError("count must not be negative", field="count")

        today = self.clock()
        venues = self.venues.list_venues()
        if venue_id:
            venues = [v for v in venues if v.id == venue_id]

        generated = []
        for venue in venues:
            generated.extend(generate_upcoming(venue, today, count))

        result = self._overlay(generated)
        # sorted() is stable: same-day occurrences keep venue order
        ordered = sorted(result.occurrences, key=lambda o: o.date)
        return ScheduleResult(mark_next(ordered), result.exceptions_applied)

    def get_upcoming_events(self, venue_id: Optional[str] = None, count: int = DEFAULT_UPCOMING_COUNT) -> List[EventOccurrence]:
        return self.upcoming(venue_id, count).occurrences

    def month(self, year: int, month: int) -> ScheduleResult:
        """``month`` is 0-indexed (0 = January)"""
        if not 0 <= month <= 11:
            raise ValidationError("month must be between 0 and 11", field="month")
        if not 1 <= year <= 9999:
            raise ValidationError("year is out of range", field="year")
        return self._overlay(generate_month(self.venues.list_venues(), year, month + 1))

    def get_events_for_month(self, year: int, month: int) -> List[EventOccurrence]:
        return self.month(year, month).occurrences

    def get_next_available_date(self, venue_id: str) -> Optional[date]:
        """First non-cancelled date in the next few weeks; None if all are cancelled"""
        events = self.get_upcoming_events(venue_id, NEXT_AVAILABLE_WINDOW)
        return next((e.date for e in events if not e.is_cancelled), None)
