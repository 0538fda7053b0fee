"""Audit router - audit trail and legacy activity log"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...constants import P
from ...database import get_db
from ...models import User
from .service import AuditService

router = APIRouter(tags=["Audit"])


def get_audit_service(db: Session = Depends(get_db)) -> AuditService:
    """Dependency injection for AuditService"""
    return AuditService(db)


@router.get("/audit")
async def search_audit(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    user_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(P.LOGS_VIEW)),
    service: AuditService = Depends(get_audit_service),
):
    return service.search(date_from, date_to, user_id, action, entity_type, page, limit)


@router.get("/audit/meta")
async def get_audit_meta(
    current_user: User = Depends(require_permission(P.LOGS_VIEW)),
    service: AuditService = Depends(get_audit_service),
):
    """Distinct actions, entity types and users for the filter dropdowns"""
    return service.get_meta()


@router.get("/logs")
async def list_logs(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(P.LOGS_VIEW)),
    service: AuditService = Depends(get_audit_service),
):
    """Legacy activity log (login, logout, create, allocate...)"""
    return service.list_activity(page, limit)
