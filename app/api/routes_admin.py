"""
Admin API routes - requires an admin session cookie
"""

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from app.api.deps import (
    get_comments,
    get_dashboard,
    get_directory,
    get_exception_store,
    get_gallery,
    get_registrations,
    get_schedule,
)
from app.api.routes_public import schedule_payload, table_payload, venue_payload
from app.core.errors import AuthFailure, NotFoundError, ValidationError
from app.schemas.community import PhotoCreate
from app.schemas.registration import LoginRequest
from app.schemas.schedule import TableExceptionUpdate, VenueExceptionUpdate
from app.schemas.venue import TableCreate, VenueCreate
from app.services.analytics_service import DashboardService
from app.services.community_service import CommentService, GalleryService
from app.services.excel_service import ExcelService
from app.services.exception_store import ExceptionStore
from app.services.registration_service import RegistrationService
from app.services.schedule_service import ScheduleService, weekday_of
from app.services.venue_directory import TableWithVenues, VenueDirectory
from app.utils.responses import success_response
from app.utils.security import check_password, clear_admin_cookie, is_admin, require_admin, set_admin_cookie

router = APIRouter()

# -------- session --------

@router.post("/login")
async def login(payload: LoginRequest):
    """Exchange the admin password for a session cookie"""
    if not check_password(payload.password):
        raise AuthFailure("Invalid password")
    response = success_response(message="Logged in")
    set_admin_cookie(response)
    return response

@router.post("/logout")
async def logout():
    response = success_response(message="Logged out")
    clear_admin_cookie(response)
    return response

@router.get("/session")
async def session(request: Request):
    return success_response(message="Session status", data={"is_admin": is_admin(request)})

# -------- venues --------

@router.post("/venues", status_code=201, dependencies=[Depends(require_admin)])
def create_venue(payload: VenueCreate, directory: VenueDirectory = Depends(get_directory)):
    venue = directory.create_venue(payload.to_domain())
    return success_response(message="Venue created", data=venue_payload(venue), status_code=201)

@router.put("/venues/{venue_id}", dependencies=[Depends(require_admin)])
def update_venue(venue_id: str, payload: VenueCreate, directory: VenueDirectory = Depends(get_directory)):
    if payload.id != venue_id:
        raise ValidationError("Venue id cannot be changed", field="id")
    directory.update_venue(payload.to_domain())
    return success_response(message="Venue updated", data=venue_payload(directory.get_venue(venue_id)))

@router.delete("/venues/{venue_id}", dependencies=[Depends(require_admin)])
def delete_venue(venue_id: str, directory: VenueDirectory = Depends(get_directory)):
    directory.delete_venue(venue_id)
    return success_response(message="Venue deleted")

# -------- tables --------

@router.post("/tables", status_code=201, dependencies=[Depends(require_admin)])
def create_table(payload: TableCreate, directory: VenueDirectory = Depends(get_directory)):
    entry = directory.create_table(payload.to_domain(), payload.venue_ids)
    return success_response(message="Table created", data=table_payload(entry), status_code=201)

@router.put("/tables/{table_id}", dependencies=[Depends(require_admin)])
def update_table(table_id: str, payload: TableCreate, directory: VenueDirectory = Depends(get_directory)):
    """Update a table; the body may carry a new id, links are replaced"""
    entry: TableWithVenues = directory.update_table(table_id, payload.to_domain(), payload.venue_ids)
    return success_response(message="Table updated", data=table_payload(entry))

@router.delete("/tables/{table_id}", dependencies=[Depends(require_admin)])
def delete_table(table_id: str, directory: VenueDirectory = Depends(get_directory)):
    directory.delete_table(table_id)
    return success_response(message="Table deleted")

# -------- schedule exceptions --------

@router.get("/schedule", dependencies=[Depends(require_admin)])
def admin_schedule(
    count: int = Query(8, ge=1, le=52),
    schedule: ScheduleService = Depends(get_schedule),
):
    """Upcoming occurrences for every venue, flagged when exceptions could not be loaded"""
    return success_response(message="Schedule retrieved", data=schedule_payload(schedule.upcoming(None, count)))

def _require_meeting_day(directory: VenueDirectory, venue_id: str, event_date: date) -> None:
    venue = directory.get_venue(venue_id)
    if venue is None:
        raise NotFoundError("Venue")
    if weekday_of(event_date) != venue.weekday:
        raise ValidationError(f"{venue.name} does not meet on {event_date.isoformat()}", field="date")

@router.put("/schedule/{venue_id}/{event_date}", dependencies=[Depends(require_admin)])
def set_venue_exception(
    venue_id: str,
    event_date: date,
    payload: VenueExceptionUpdate,
    directory: VenueDirectory = Depends(get_directory),
    exceptions: ExceptionStore = Depends(get_exception_store),
):
    """Cancel an occurrence or attach a note to it"""
    _require_meeting_day(directory, venue_id, event_date)
    exception = exceptions.upsert_venue_exception(venue_id, event_date, payload.is_cancelled, payload.note)
    return success_response(message="Schedule updated", data=asdict(exception))

@router.delete("/schedule/{venue_id}/{event_date}", dependencies=[Depends(require_admin)])
def restore_venue_default(
    venue_id: str,
    event_date: date,
    exceptions: ExceptionStore = Depends(get_exception_store),
):
    """Restore an occurrence to its default active state"""
    removed = exceptions.clear_venue_exception(venue_id, event_date)
    return success_response(
        message="Event restored" if removed else "Event already active",
        data={"venue_id": venue_id, "date": event_date}
    )

@router.get("/table-exceptions/{venue_id}/{event_date}", dependencies=[Depends(require_admin)])
def table_exceptions(
    venue_id: str,
    event_date: date,
    exceptions: ExceptionStore = Depends(get_exception_store),
):
    rows = exceptions.get_table_exceptions(venue_id, event_date)
    return success_response(message="Table exceptions retrieved", data=[asdict(r) for r in rows])

@router.put("/table-exceptions/{venue_id}/{table_id}/{event_date}", dependencies=[Depends(require_admin)])
def set_table_exception(
    venue_id: str,
    table_id: str,
    event_date: date,
    payload: TableExceptionUpdate,
    exceptions: ExceptionStore = Depends(get_exception_store),
):
    exceptions.set_table_exception(venue_id, table_id, event_date, payload.is_cancelled)
    return success_response(
        message="Table closed" if payload.is_cancelled else "Table reopened",
        data={"venue_id": venue_id, "table_id": table_id, "date": event_date, "is_cancelled": payload.is_cancelled}
    )

# -------- registrations & analytics --------

@router.get("/registrations", dependencies=[Depends(require_admin)])
def list_registrations(
    event_date: date = Query(..., alias="date"),
    venue_id: Optional[str] = None,
    registrations: RegistrationService = Depends(get_registrations),
):
    rows = registrations.list_for_date(event_date, venue_id)
    return success_response(message="Registrations retrieved", data=[r.to_dict() for r in rows])

@router.get("/analytics/date", dependencies=[Depends(require_admin)])
def date_summary(
    event_date: date = Query(..., alias="date"),
    venue_id: Optional[str] = None,
    dashboard: DashboardService = Depends(get_dashboard),
):
    return success_response(message="Summary retrieved", data=dashboard.date_summary(event_date, venue_id))

@router.get("/analytics/trend", dependencies=[Depends(require_admin)])
def trend(
    start: date,
    end: date,
    dashboard: DashboardService = Depends(get_dashboard),
):
    return success_response(message="Trend retrieved", data=dashboard.trend(start, end))

@router.get("/export/registrations.xlsx", dependencies=[Depends(require_admin)])
def export_registrations(
    start: date,
    end: date,
    registrations: RegistrationService = Depends(get_registrations),
):
    """Download registrations in a date range as an Excel workbook"""
    if start > end:
        raise ValidationError("start must not be after end", field="start")
    content = ExcelService.export_registrations(registrations.list_in_range(start, end))
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=registrations_{start}_{end}.xlsx"}
    )

# -------- community content --------

@router.get("/comments", dependencies=[Depends(require_admin)])
def all_comments(comments: CommentService = Depends(get_comments)):
    return success_response(message="Comments retrieved", data=comments.list_comments())

@router.delete("/comments/{comment_id}", dependencies=[Depends(require_admin)])
def delete_comment(comment_id: str, comments: CommentService = Depends(get_comments)):
    comments.delete_comment(comment_id)
    return success_response(message="Comment deleted")

@router.post("/gallery", status_code=201, dependencies=[Depends(require_admin)])
def add_photo(payload: PhotoCreate, gallery: GalleryService = Depends(get_gallery)):
    photo = gallery.add_photo(payload.url, payload.date.isoformat(), payload.caption)
    return success_response(message="Photo added", data=photo, status_code=201)

@router.delete("/gallery/{photo_id}", dependencies=[Depends(require_admin)])
def delete_photo(photo_id: str, gallery: GalleryService = Depends(get_gallery)):
    gallery.delete_photo(photo_id)
    return success_response(message="Photo deleted")
