"""
Registration API routes
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool

from app.api.deps import get_directory, get_registrations, get_schedule
from app.api.ws import REGISTRATIONS_CHANNEL, websocket_manager
from app.core.errors import RateLimited, ValidationError
from app.schemas.registration import RegistrationCreate
from app.services.registration_service import RegistrationService, compose_choice
from app.services.schedule_service import ScheduleService
from app.services.venue_directory import VenueDirectory
from app.utils.responses import success_response
from app.utils.security import get_client_ip, rate_limit_check

router = APIRouter()

@router.post("", status_code=201)
async def register(
    request: Request,
    payload: RegistrationCreate,
    registrations: RegistrationService = Depends(get_registrations),
):
    """Sign up for a table at a venue occurrence and announce it to the ticker"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        raise RateLimited()

    # Store calls are blocking; keep them off the event loop
    registration = await run_in_threadpool(
        registrations.register,
        user_name=payload.user_name,
        table_id=payload.table_id,
        event_date=payload.event_date,
        venue_id=payload.venue_id,
        is_first_time=payload.is_first_time,
        language_goals=compose_choice(payload.language, payload.other_language),
        marketing_source=compose_choice(payload.marketing_source, payload.other_source),
    )

    await websocket_manager.broadcast(REGISTRATIONS_CHANNEL, {
        "type": "registration",
        "registration": {
            "id": registration.id,
            "user_name": registration.user_name,
            "table_type": registration.table_id,
            "event_date": registration.event_date,
        },
    })

    return success_response(
        message="Registration confirmed!",
        data=registration.to_dict(),
        status_code=201
    )

@router.get("/counts")
def counts_by_table(
    event_date: date = Query(..., alias="date"),
    venue_id: Optional[str] = None,
    registrations: RegistrationService = Depends(get_registrations),
    directory: VenueDirectory = Depends(get_directory),
):
    """Registrations per table on a date, seeded with the venue's tables"""
    table_ids = []
    if venue_id:
        venue = directory.get_venue(venue_id)
        if venue is None:
            raise ValidationError("Unknown venue", field="venue_id")
        table_ids = venue.table_ids
    return success_response(
        message="Counts retrieved",
        data=registrations.count_by_table(event_date, table_ids)
    )

@router.get("/ticker")
def ticker(
    registrations: RegistrationService = Depends(get_registrations),
    schedule: ScheduleService = Depends(get_schedule),
):
    """Latest registrants for each venue's next active date"""
    dates = registrations.ticker_dates(schedule)
    recent = registrations.recent_for_dates(dates)
    return success_response(
        message="Recent registrants retrieved",
        data={
            "dates": dates,
            "registrants": [
                {"id": r.id, "user_name": r.user_name, "table_type": r.table_id, "event_date": r.event_date}
                for r in recent
            ],
        }
    )
