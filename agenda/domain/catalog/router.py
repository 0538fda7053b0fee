"""Catalog router - cities, technicians, subjects and /config"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_permission
from ...constants import P
from ...database import get_db
from ...models import User
from .schemas import CatalogEntryCreate, SubjectToggle
from .service import CITY, TECHNICIAN, CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# CITIES
# ============================================================================


@router.get("/cities")
async def list_cities(
    current_user: User = Depends(require_permission(P.CITIES_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_entries(CITY)


@router.post("/cities")
async def create_city(
    data: CatalogEntryCreate,
    request: Request,
    current_user: User = Depends(require_permission(P.CITIES_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_entry(CITY, data, current_user, request)


@router.delete("/cities/{city_id}")
async def delete_city(
    city_id: int,
    request: Request,
    current_user: User = Depends(require_permission(P.CITIES_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    """Deactivate a city"""
    return service.deactivate_entry(CITY, city_id, current_user, request)


@router.post("/cities/{city_id}/toggle")
async def toggle_city(
    city_id: int,
    request: Request,
    current_user: User = Depends(require_permission(P.CITIES_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.toggle_entry(CITY, city_id, current_user, request)


# ============================================================================
# TECHNICIANS
# ============================================================================


@router.get("/technicians")
async def list_technicians(
    current_user: User = Depends(require_permission(P.TECHNICIANS_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_entries(TECHNICIAN)


@router.post("/technicians")
async def create_technician(
    data: CatalogEntryCreate,
    request: Request,
    current_user: User = Depends(require_permission(P.TECHNICIANS_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_entry(TECHNICIAN, data, current_user, request)


@router.delete("/technicians/{technician_id}")
async def delete_technician(
    technician_id: int,
    request: Request,
    current_user: User = Depends(require_permission(P.TECHNICIANS_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    """Deactivate a technician"""
    return service.deactivate_entry(TECHNICIAN, technician_id, current_user, request)


@router.post("/technicians/{technician_id}/toggle")
async def toggle_technician(
    technician_id: int,
    request: Request,
    current_user: User = Depends(require_permission(P.TECHNICIANS_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.toggle_entry(TECHNICIAN, technician_id, current_user, request)


# ============================================================================
# SUBJECTS
# ============================================================================


@router.get("/subjects")
async def list_subjects(
    active: Optional[str] = Query(None, description="0 includes inactive subjects"),
    current_user: User = Depends(require_permission(P.CONFIG_VIEW)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_subjects(active)


@router.post("/subjects", status_code=201)
async def create_subject(
    data: CatalogEntryCreate,
    request: Request,
    current_user: User = Depends(require_permission(P.SUBJECTS_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.upsert_subject(data, current_user, request)


@router.put("/subjects/{subject_id}")
async def rename_subject(
    subject_id: int,
    data: CatalogEntryCreate,
    request: Request,
    current_user: User = Depends(require_permission(P.SUBJECTS_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.rename_subject(subject_id, data, current_user, request)


@router.post("/subjects/{subject_id}/toggle")
async def toggle_subject(
    subject_id: int,
    data: SubjectToggle,
    request: Request,
    current_user: User = Depends(require_permission(P.SUBJECTS_MANAGE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.toggle_subject(subject_id, data, current_user, request)


# ============================================================================
# DASHBOARD CONFIG
# ============================================================================


@router.get("/config")
async def get_config(
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active catalogs, statuses and the nested vacancy structure"""
    return service.get_config()
