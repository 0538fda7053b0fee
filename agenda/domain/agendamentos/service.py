"""Agendamento service - Business logic for service orders (OS)"""

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from ...constants import PERIODOS, STATUS_ABERTA, STATUS_AGENDADA, STATUS_POSSIVEIS
from ...models import Agendamento, User
from ...services.audit_service import activity_log, audit_log
from ...shared.serializers import row_to_dict
from ...shared.validators import (
    clamp_int,
    normalize_period,
    parse_data_hora,
    require_fields,
    split_csv,
)
from ..vacancies.service import VacancyService
from .repository import SORTABLE_COLUMNS, AgendamentoRepository
from .schemas import AgendamentoAllocate, AgendamentoCreate, AgendamentoUpdate

logger = logging.getLogger(__name__)

NOT_FOUND = "Agendamento não encontrado"
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


class AgendamentoService:
    """Service layer for agendamento business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AgendamentoRepository()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(self, params: dict[str, Any]) -> dict[str, Any]:
        """Filtered, sorted and paginated search"""
        page = clamp_int(params.get("page"), 1, 1)
        page_size = clamp_int(params.get("page_size"), DEFAULT_PAGE_SIZE, 1, MAX_PAGE_SIZE)

        sort_by = params.get("sort_by") or "data_hora"
        if sort_by not in SORTABLE_COLUMNS:
            sort_by = "data_hora"
        sort_dir = "asc" if str(params.get("sort_dir") or "").lower() == "asc" else "desc"

        filters = {
            "cidade": params.get("cidade"),
            "tecnico": params.get("tecnico"),
            "assunto": params.get("assunto"),
            "tipo_os": params.get("tipo_os"),
            "status": split_csv(params.get("status")),
            "cliente": (params.get("cliente") or "").strip(),
            "data": params.get("data"),
            "data_inicio": params.get("data_inicio"),
            "data_fim": params.get("data_fim"),
            "periodo": normalize_period(params.get("periodo")) if params.get("periodo") else None,
        }

        rows, total = self.repo.search(
            self.db, filters, sort_by, sort_dir, (page - 1) * page_size, page_size
        )
        total_pages = max(1, -(-total // page_size))

        return {
            "rows": [row_to_dict(r) for r in rows],
            "meta": {
                "page": page,
                "page_size": page_size,
                "total": total,
                "total_pages": total_pages,
                "sort_by": sort_by,
                "sort_dir": sort_dir,
            },
        }

    def list_agendamentos(
        self,
        cidade: Optional[str] = None,
        data: Optional[str] = None,
        status: Optional[str] = None,
        cliente: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        rows = self.repo.list_agendamentos(self.db, cidade, data, status, cliente)
        return [row_to_dict(r) for r in rows]

    def get_unallocated(self) -> list[dict[str, Any]]:
        return [row_to_dict(r) for r in self.repo.get_unallocated(self.db)]

    def get_agendamento(self, agendamento_id: int) -> Agendamento:
        agendamento = self.repo.get_by_id(self.db, agendamento_id)
        if not agendamento:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return agendamento

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_agendamento(
        self, data: AgendamentoCreate, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        """Open a new OS with status Aberta"""
        require_fields(data.model_dump(), ["cliente", "cidade", "assunto", "tipo_os"])

        agendamento = self.repo.create(
            self.db,
            cliente=data.cliente.strip(),
            cidade=data.cidade,
            assunto=data.assunto,
            tipo_os=data.tipo_os,
            observacoes=data.observacao,
            status=STATUS_ABERTA,
        )
        logger.info(f"✅ OS #{agendamento.id} created by {user.username} ({agendamento.cliente})")

        audit_log(
            self.db,
            request,
            user,
            action="CREATE_AGENDAMENTO",
            entity_type="agendamento",
            entity_id=agendamento.id,
            new_value=row_to_dict(agendamento),
        )
        activity_log(
            self.db,
            request,
            user.username,
            "CREATE",
            f"Criou OS #{agendamento.id} para {agendamento.cliente}",
        )
        return {"id": agendamento.id, "message": "Agendamento criado com sucesso"}

    def update_agendamento(
        self,
        agendamento_id: int,
        data: AgendamentoUpdate,
        user: User,
        request: Optional[Request] = None,
    ) -> dict[str, Any]:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise HTTPException(
                status_code=400, detail="Nenhum campo para atualizar foi fornecido."
            )

        agendamento = self.get_agendamento(agendamento_id)
        old = row_to_dict(agendamento)

        if "status" in updates and updates["status"] not in STATUS_POSSIVEIS:
            raise HTTPException(status_code=400, detail=f"Status inválido: {updates['status']}")

        if "periodo" in updates and updates["periodo"] is not None:
            periodo = normalize_period(updates["periodo"])
            if periodo not in PERIODOS:
                raise HTTPException(status_code=400, detail=f"Período inválido: {updates['periodo']}")
            updates["periodo"] = periodo

        if "data_hora" in updates and updates["data_hora"]:
            try:
                updates["data_hora"] = parse_data_hora(
                    updates["data_hora"], updates.get("periodo") or agendamento.periodo
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail="data_hora inválida") from e
        elif "data_hora" in updates:
            updates["data_hora"] = None

        # Back in the unallocated list: it no longer holds a period
        if updates.get("status") == STATUS_ABERTA:
            updates["periodo"] = None

        agendamento = self.repo.update(self.db, agendamento, **updates)
        logger.info(f"📝 OS #{agendamento.id} updated by {user.username}: {sorted(updates)}")

        audit_log(
            self.db,
            request,
            user,
            action="UPDATE_AGENDAMENTO",
            entity_type="agendamento",
            entity_id=agendamento.id,
            old_value=old,
            new_value=row_to_dict(agendamento),
        )
        return {"message": "Agendamento atualizado com sucesso"}

    def delete_agendamento(
        self, agendamento_id: int, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        agendamento = self.get_agendamento(agendamento_id)
        old = row_to_dict(agendamento)

        self.repo.delete(self.db, agendamento)
        logger.info(f"🗑️ OS #{agendamento_id} deleted by {user.username}")

        audit_log(
            self.db,
            request,
            user,
            action="DELETE_AGENDAMENTO",
            entity_type="agendamento",
            entity_id=agendamento_id,
            old_value=old,
        )
        activity_log(
            self.db, request, user.username, "DELETE", f"Excluiu OS #{agendamento_id}"
        )
        return {"message": "Agendamento excluído com sucesso"}

    def allocate(
        self,
        agendamento_id: int,
        data: AgendamentoAllocate,
        user: User,
        request: Optional[Request] = None,
    ) -> dict[str, Any]:
        """
        Place an OS on a grid slot (city x type x period x subject, one day).

        The slot must match the OS's own subject, city and type, and the
        cell must still have room once closed slots are taken out. Other OS
        count against the cell unless they are Aberta or Cancelada.
        """
        require_fields(data.model_dump(), ["data_hora", "periodo", "vaga_assunto"])

        periodo = normalize_period(data.periodo)
        if periodo not in PERIODOS:
            raise HTTPException(status_code=400, detail=f"Período inválido: {data.periodo}")

        try:
            data_hora = parse_data_hora(data.data_hora, periodo)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="data_hora inválida") from e

        agendamento = self.get_agendamento(agendamento_id)

        if data.vaga_assunto != agendamento.assunto:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Assunto da vaga ({data.vaga_assunto}) diferente do assunto da OS "
                    f"({agendamento.assunto})"
                ),
            )
        if data.cidade and data.cidade != agendamento.cidade:
            raise HTTPException(
                status_code=400,
                detail=f"Cidade da vaga ({data.cidade}) diferente da cidade da OS ({agendamento.cidade})",
            )
        if data.tipo_os and data.tipo_os != agendamento.tipo_os:
            raise HTTPException(
                status_code=400,
                detail=f"Tipo da vaga ({data.tipo_os}) diferente do tipo da OS ({agendamento.tipo_os})",
            )

        day = data_hora.date().isoformat()
        capacity, available = VacancyService(self.db).effective_capacity(
            agendamento.cidade, agendamento.tipo_os, periodo, agendamento.assunto, day
        )
        occupied = self.repo.count_occupied(
            self.db,
            agendamento.cidade,
            agendamento.tipo_os,
            agendamento.assunto,
            day,
            periodo,
            exclude_id=agendamento.id,
        )

        if occupied >= available:
            logger.info(
                f"⚠️ OS #{agendamento.id} rejected: {occupied}/{available} "
                f"(capacity {capacity}) for {agendamento.assunto} {periodo} {day}"
            )
            raise HTTPException(
                status_code=400,
                detail=f"Vaga indisponível. Limite de {available} para {agendamento.assunto} ({periodo}).",
            )

        old = row_to_dict(agendamento)
        agendamento = self.repo.update(
            self.db, agendamento, data_hora=data_hora, periodo=periodo, status=STATUS_AGENDADA
        )
        logger.info(f"📅 OS #{agendamento.id} allocated to {day} {periodo} by {user.username}")

        audit_log(
            self.db,
            request,
            user,
            action="ALLOCATE_AGENDAMENTO",
            entity_type="agendamento",
            entity_id=agendamento.id,
            old_value=old,
            new_value=row_to_dict(agendamento),
        )
        activity_log(
            self.db,
            request,
            user.username,
            "ALLOCATE",
            f"Alocou OS #{agendamento.id} em {day} ({periodo})",
        )
        return {"message": "Agendamento alocado com sucesso"}
