"""
Public API routes - no authentication required
"""

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_comments, get_directory, get_gallery, get_registrations, get_schedule
from app.core.errors import NotFoundError
from app.schemas.community import CommentCreate
from app.schemas.schedule import ScheduleResponse
from app.schemas.venue import TableResponse, VenueResponse
from app.services.community_service import CommentService, GalleryService
from app.services.registration_service import RegistrationService
from app.services.schedule_service import DEFAULT_UPCOMING_COUNT, ScheduleResult, ScheduleService
from app.services.venue_directory import TableWithVenues, Venue, VenueDirectory
from app.utils.responses import success_response

router = APIRouter()

def venue_payload(venue: Venue) -> dict:
    return VenueResponse.model_validate(venue).model_dump()

def table_payload(entry: TableWithVenues) -> dict:
    return TableResponse.model_validate({**asdict(entry.table), "venue_ids": list(entry.venue_ids)}).model_dump()

def schedule_payload(result: ScheduleResult) -> dict:
    return ScheduleResponse.model_validate(result).model_dump()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/venues")
def list_venues(directory: VenueDirectory = Depends(get_directory)):
    venues = directory.list_venues()
    return success_response(
        message="Venues retrieved",
        data=[venue_payload(v) for v in venues]
    )

@router.get("/venues/{venue_id}")
def get_venue(venue_id: str, directory: VenueDirectory = Depends(get_directory)):
    venue = directory.get_venue(venue_id)
    if venue is None:
        raise NotFoundError("Venue")
    return success_response(message="Venue retrieved", data=venue_payload(venue))

@router.get("/venues/{venue_id}/availability")
def table_availability(
    venue_id: str,
    event_date: date = Query(..., alias="date"),
    registrations: RegistrationService = Depends(get_registrations),
):
    """Seats left per table on a date; full or cancelled tables should be disabled"""
    tables = registrations.table_availability(venue_id, event_date)
    return success_response(
        message="Table availability retrieved",
        data={"venue_id": venue_id, "date": event_date, "tables": [t.to_dict() for t in tables]}
    )

@router.get("/tables")
def list_tables(directory: VenueDirectory = Depends(get_directory)):
    return success_response(
        message="Tables retrieved",
        data=[table_payload(t) for t in directory.list_tables()]
    )

@router.get("/schedule/upcoming")
def upcoming_events(
    venue_id: Optional[str] = None,
    count: int = Query(DEFAULT_UPCOMING_COUNT, ge=0, le=52),
    schedule: ScheduleService = Depends(get_schedule),
):
    """Next ``count`` occurrences per venue, merged in date order"""
    return success_response(
        message="Upcoming events retrieved",
        data=schedule_payload(schedule.upcoming(venue_id, count))
    )

@router.get("/schedule/month")
def events_for_month(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=0, le=11, description="0-indexed, 0 = January"),
    schedule: ScheduleService = Depends(get_schedule),
):
    return success_response(
        message="Monthly events retrieved",
        data=schedule_payload(schedule.month(year, month))
    )

@router.get("/schedule/next/{venue_id}")
def next_available_date(venue_id: str, schedule: ScheduleService = Depends(get_schedule)):
    next_date = schedule.get_next_available_date(venue_id)
    return success_response(
        message="Next available date retrieved" if next_date else "No upcoming date available",
        data={"venue_id": venue_id, "date": next_date}
    )

@router.get("/comments")
def list_comments(
    comment_type: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=100),
    comments: CommentService = Depends(get_comments),
):
    return success_response(
        message="Comments retrieved",
        data=comments.list_comments(comment_type, limit)
    )

@router.post("/comments", status_code=201)
def create_comment(payload: CommentCreate, comments: CommentService = Depends(get_comments)):
    comment = comments.create_comment(
        user_name=payload.user_name,
        message=payload.message,
        attended_date=payload.attended_date.isoformat() if payload.attended_date else None,
        table_type=payload.table_type,
        comment_type=payload.comment_type,
    )
    return success_response(message="Thank you for your comment!", data=comment, status_code=201)

@router.get("/gallery")
def list_photos(gallery: GalleryService = Depends(get_gallery)):
    return success_response(message="Photos retrieved", data=gallery.list_photos())
