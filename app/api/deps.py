"""
FastAPI dependencies wiring the services to a request-scoped store
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.services.analytics_service import DashboardService
from app.services.community_service import CommentService, GalleryService
from app.services.exception_store import ExceptionStore
from app.services.registration_service import RegistrationService
from app.services.schedule_service import ScheduleService
from app.services.store import RowStore, open_store
from app.services.venue_directory import CatalogCache, VenueDirectory

# Shared across requests; admin mutations invalidate it
catalog_cache = CatalogCache(settings.CATALOG_CACHE_TTL_SECONDS)

def get_store(db: Session = Depends(get_db)) -> RowStore:
    return open_store(db)

def get_directory(store: RowStore = Depends(get_store)) -> VenueDirectory:
    return VenueDirectory(store, catalog_cache)

def get_exception_store(store: RowStore = Depends(get_store)) -> ExceptionStore:
    return ExceptionStore(store)

def get_schedule(
    directory: VenueDirectory = Depends(get_directory),
    exceptions: ExceptionStore = Depends(get_exception_store),
) -> ScheduleService:
    return ScheduleService(directory, exceptions)

def get_registrations(
    store: RowStore = Depends(get_store),
    directory: VenueDirectory = Depends(get_directory),
    exceptions: ExceptionStore = Depends(get_exception_store),
) -> RegistrationService:
    return RegistrationService(store, directory, exceptions)

def get_dashboard(registrations: RegistrationService = Depends(get_registrations)) -> DashboardService:
    return DashboardService(registrations)

def get_comments(store: RowStore = Depends(get_store)) -> CommentService:
    return CommentService(store)

def get_gallery(store: RowStore = Depends(get_store)) -> GalleryService:
    return GalleryService(store)
