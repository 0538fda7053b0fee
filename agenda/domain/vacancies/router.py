"""Vacancy router - grid, closed slots and capacity template endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...constants import P
from ...database import get_db
from ...models import User
from .schemas import ClosedSlotUpdate, TemplateAdjust, TemplatesUpdate
from .service import VacancyService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Vagas"])


def get_vacancy_service(db: Session = Depends(get_db)) -> VacancyService:
    """Dependency injection for VacancyService"""
    return VacancyService(db)


# ============================================================================
# GRID VIEWS
# ============================================================================


@router.get("/vagas/{cidade}/{data}")
async def get_vagas(
    cidade: str,
    data: str,
    current_user: User = Depends(require_permission(P.VAGAS_VIEW)),
    service: VacancyService = Depends(get_vacancy_service),
):
    """Capacity template of a city plus the day's scheduled OS"""
    return service.get_vagas(cidade, data)


@router.get("/vagas-detalhadas/{cidade}/{tipo}/{data}")
async def get_vagas_detalhadas(
    cidade: str,
    tipo: str,
    data: str,
    current_user: User = Depends(require_permission(P.VAGAS_VIEW)),
    service: VacancyService = Depends(get_vacancy_service),
):
    """Detailed grid: capacities, OS per cell and closed slots"""
    return service.get_vagas_detalhadas(cidade, tipo, data)


# ============================================================================
# CLOSED SLOTS
# ============================================================================


@router.get("/vagas-fechadas")
async def get_vagas_fechadas(
    cidade: Optional[str] = Query(None),
    data: Optional[str] = Query(None),
    tipo: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(P.VAGAS_VIEW)),
    service: VacancyService = Depends(get_vacancy_service),
):
    return service.get_closed_slots(cidade, data, tipo)


@router.put("/vagas-fechadas")
async def set_vaga_fechada(
    data: ClosedSlotUpdate,
    request: Request,
    current_user: User = Depends(require_permission(P.VAGAS_MANAGE)),
    service: VacancyService = Depends(get_vacancy_service),
):
    """Close (or reopen with closed=false) one slot of a day"""
    return service.set_slot_state(data, current_user, request)


# ============================================================================
# CAPACITY TEMPLATES
# ============================================================================


@router.get("/vacancy-templates")
async def get_vacancy_templates(
    city: Optional[str] = Query(None),
    tipo_os: Optional[str] = Query(None),
    periodo: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(P.VAGAS_MANAGE)),
    service: VacancyService = Depends(get_vacancy_service),
):
    return service.get_templates(city, tipo_os, periodo)


@router.put("/vacancy-templates")
async def save_vacancy_templates(
    data: TemplatesUpdate,
    request: Request,
    current_user: User = Depends(require_permission(P.VAGAS_MANAGE)),
    service: VacancyService = Depends(get_vacancy_service),
):
    """Save all subject capacities of one city/type/period"""
    return service.save_templates(data, current_user, request)


@router.post("/vacancy-templates/adjust")
async def adjust_vacancy_template(
    data: TemplateAdjust,
    request: Request,
    current_user: User = Depends(require_permission(P.VAGAS_ADJUST)),
    service: VacancyService = Depends(get_vacancy_service),
):
    """+1 / -1 on one cell's capacity"""
    return service.adjust_template(data, current_user, request)
