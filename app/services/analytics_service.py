"""
Registration analytics for the admin dashboard
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional

from app.core.errors import ValidationError
from app.services.registration_service import Registration, RegistrationService


def split_language_goals(value: str) -> List[str]:
    """Language goals may hold several comma separated entries"""
    return [goal.strip() for goal in (value or "").split(",") if goal.strip()]


def count_languages(registrations: Iterable[Registration]) -> Dict[str, int]:
    counts: Counter = Counter()
    for r in registrations:
        counts.update(split_language_goals(r.language_goals))
    return dict(counts)


class DashboardService:
    """Aggregates over the registration ledger"""

    def __init__(self, registrations: RegistrationService):
        self.registrations = registrations

    def date_summary(self, event_date, venue_id: Optional[str] = None) -> Dict:
        rows = self.registrations.list_for_date(event_date, venue_id)
        first_timers = sum(1 for r in rows if r.is_first_time)
        return {
            "event_date": str(event_date),
            "total": len(rows),
            "by_table": dict(Counter(r.table_id for r in rows)),
            "by_language": count_languages(rows),
            "by_marketing_source": dict(Counter(r.marketing_source for r in rows if r.marketing_source)),
            "new_vs_returning": {"new": first_timers, "returning": len(rows) - first_timers},
        }

    def trend(self, start, end) -> List[Dict]:
        """Registrations per event date between ``start`` and ``end`` inclusive"""
        if str(start) > str(end):
            raise ValidationError("start must not be after end", field="start")
        counts = Counter(r.event_date for r in self.registrations.list_in_range(start, end))
        return [{"date": d, "count": counts[d]} for d in sorted(counts)]
