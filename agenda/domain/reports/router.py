"""Report router - production summary endpoint"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...constants import P
from ...database import get_db
from ...models import User
from .service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    """Dependency injection for ReportService"""
    return ReportService(db)


@router.get("/summary")
async def get_summary(
    data_inicio: Optional[str] = Query(None),
    data_fim: Optional[str] = Query(None),
    cidade: Optional[str] = Query(None),
    tecnico: Optional[str] = Query(None),
    assunto: Optional[str] = Query(None),
    tipo_os: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="Comma separated list"),
    current_user: User = Depends(require_permission(P.REPORTS_VIEW)),
    service: ReportService = Depends(get_report_service),
):
    """OS counts per city, technician, subject, type and status"""
    return service.get_summary(data_inicio, data_fim, cidade, tecnico, assunto, tipo_os, status)
