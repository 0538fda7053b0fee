"""Agendamento router - FastAPI endpoints for service orders"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...constants import P
from ...database import get_db
from ...models import User
from ...shared.serializers import row_to_dict
from .schemas import AgendamentoAllocate, AgendamentoCreate, AgendamentoUpdate
from .service import AgendamentoService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agendamentos", tags=["Agendamentos"])


def get_agendamento_service(db: Session = Depends(get_db)) -> AgendamentoService:
    """Dependency injection for AgendamentoService"""
    return AgendamentoService(db)


# ============================================================================
# QUERIES (static paths first so /{agendamento_id} does not shadow them)
# ============================================================================


@router.get("/search")
async def search_agendamentos(
    cidade: Optional[str] = Query(None),
    tecnico: Optional[str] = Query(None),
    assunto: Optional[str] = Query(None),
    tipo_os: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="Comma separated list"),
    cliente: Optional[str] = Query(None),
    data: Optional[str] = Query(None),
    data_inicio: Optional[str] = Query(None),
    data_fim: Optional[str] = Query(None),
    periodo: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_dir: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(P.AGENDA_VIEW)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    """Filtered, sorted and paginated OS search"""
    return service.search(
        {
            "cidade": cidade,
            "tecnico": tecnico,
            "assunto": assunto,
            "tipo_os": tipo_os,
            "status": status,
            "cliente": cliente,
            "data": data,
            "data_inicio": data_inicio,
            "data_fim": data_fim,
            "periodo": periodo,
            "page": page,
            "page_size": page_size,
            "sort_by": sort_by,
            "sort_dir": sort_dir,
        }
    )


@router.get("")
async def list_agendamentos(
    cidade: Optional[str] = Query(None),
    data: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    cliente: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(P.AGENDA_VIEW)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    return service.list_agendamentos(cidade, data, status, cliente)


@router.get("/nao-alocados")
async def list_nao_alocados(
    current_user: User = Depends(require_permission(P.AGENDA_VIEW)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    """OS still waiting for a slot (status Aberta)"""
    return service.get_unallocated()


@router.get("/{agendamento_id}")
async def get_agendamento(
    agendamento_id: int,
    current_user: User = Depends(require_permission(P.AGENDA_VIEW)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    return row_to_dict(service.get_agendamento(agendamento_id))


# ============================================================================
# WRITES
# ============================================================================


@router.post("", status_code=201)
async def create_agendamento(
    data: AgendamentoCreate,
    request: Request,
    current_user: User = Depends(require_permission(P.AGENDA_CREATE)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    return service.create_agendamento(data, current_user, request)


@router.put("/{agendamento_id}")
async def update_agendamento(
    agendamento_id: int,
    data: AgendamentoUpdate,
    request: Request,
    current_user: User = Depends(require_permission(P.AGENDA_EDIT)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    return service.update_agendamento(agendamento_id, data, current_user, request)


@router.delete("/{agendamento_id}")
async def delete_agendamento(
    agendamento_id: int,
    request: Request,
    current_user: User = Depends(require_permission(P.AGENDA_DELETE)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    return service.delete_agendamento(agendamento_id, current_user, request)


@router.put("/{agendamento_id}/alocar")
async def alocar_agendamento(
    agendamento_id: int,
    data: AgendamentoAllocate,
    request: Request,
    current_user: User = Depends(require_permission(P.AGENDA_ALLOCATE)),
    service: AgendamentoService = Depends(get_agendamento_service),
):
    """Drop an OS onto a vacancy slot"""
    return service.allocate(agendamento_id, data, current_user, request)
