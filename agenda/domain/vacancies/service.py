"""Vacancy service - grid views, closed slots and capacity templates"""

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...constants import PERIODOS, STATUS_NA_GRADE
from ...models import User
from ...services.audit_service import audit_log
from ...shared.serializers import row_to_dict
from ...shared.validators import (
    MAX_DB_INT,
    is_falsy_flag,
    normalize_period,
    require_fields,
    validate_day,
)
from ..agendamentos.repository import AgendamentoRepository
from .repository import GridKey, VacancyRepository
from .schemas import ClosedSlotUpdate, TemplateAdjust, TemplatesUpdate

logger = logging.getLogger(__name__)


def _parse_day(value: str) -> str:
    try:
        return validate_day(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _parse_index(value: Any) -> int:
    """Slot index: an integer >= 0, numeric strings accepted"""
    number = _as_number(value)
    if number is None or not number.is_integer() or not 0 <= number <= MAX_DB_INT:
        raise HTTPException(status_code=400, detail="index inválido")
    return int(number)


def _to_capacity(value: Any) -> int:
    """Non-numeric → 0, clamped to 0..MAX_DB_INT"""
    try:
        return min(MAX_DB_INT, max(0, int(float(value))))
    except (TypeError, ValueError, OverflowError):
        return 0


class VacancyService:
    """Service layer for vacancy grid business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VacancyRepository()

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    def effective_capacity(
        self, cidade: str, tipo: Optional[str], periodo: str, assunto: str, day: str
    ) -> tuple[int, int]:
        """
        (template capacity, capacity left after closed slots) for one cell.

        Only closed indexes inside the template range count; a slot closed
        before the capacity was lowered no longer exists.
        """
        if not tipo:
            return 0, 0
        capacity = self.repo.get_capacity(self.db, cidade, tipo, periodo, assunto)
        closed = [
            i
            for i in self.repo.get_closed_indexes(self.db, cidade, tipo, periodo, assunto, day)
            if i < capacity
        ]
        return capacity, max(0, capacity - len(closed))

    # ------------------------------------------------------------------
    # Grid views
    # ------------------------------------------------------------------

    def get_vagas(self, cidade: str, data: str) -> dict[str, Any]:
        day = _parse_day(data)

        template: dict[str, dict[str, dict[str, int]]] = {}
        for tipo, periodo, assunto, capacidade in self.repo.get_city_templates(self.db, cidade):
            template.setdefault(tipo, {}).setdefault(periodo, {})[assunto] = int(capacidade or 0)

        ocupadas = AgendamentoRepository.get_scheduled_for_day(self.db, cidade, day)
        return {"template": template, "ocupadas": [row_to_dict(a) for a in ocupadas]}

    def get_vagas_detalhadas(self, cidade: str, tipo: str, data: str) -> dict[str, Any]:
        day = _parse_day(data)

        template: dict[str, dict[str, int]] = {periodo: {} for periodo in PERIODOS}
        for periodo, assunto, capacidade in self.repo.get_city_type_templates(
            self.db, cidade, tipo
        ):
            template.setdefault(periodo, {})[assunto] = int(capacidade or 0)

        if not any(template.values()):
            raise HTTPException(status_code=400, detail="Cidade ou tipo de OS não encontrado")

        # Only cells present in the template are drawn; other rows are left out
        agendamentos: dict[str, dict[str, list]] = {
            periodo: {assunto: [] for assunto in cells} for periodo, cells in template.items()
        }
        for agendamento, periodo in AgendamentoRepository.get_grid_rows(
            self.db, cidade, tipo, day, STATUS_NA_GRADE
        ):
            cell = agendamentos.get(periodo, {}).get(agendamento.assunto)
            if cell is not None:
                cell.append(row_to_dict(agendamento))

        fechadas: dict[str, dict[str, list[int]]] = {
            periodo: {assunto: [] for assunto in cells} for periodo, cells in template.items()
        }
        for periodo, assunto, idx in self.repo.get_closed_for_day(self.db, cidade, tipo, day):
            cell = fechadas.get(periodo, {}).get(assunto)
            if cell is not None:
                cell.append(int(idx))

        return {
            "template": template,
            "agendamentos": agendamentos,
            "vagasFechadas": fechadas,
            "cidade": cidade,
            "data": day,
            "tipo": tipo,
        }

    # ------------------------------------------------------------------
    # Closed slots
    # ------------------------------------------------------------------

    def get_closed_slots(
        self, cidade: Optional[str], data: Optional[str], tipo: Optional[str]
    ) -> dict[str, dict[str, list[int]]]:
        if not cidade or not data or not tipo:
            raise HTTPException(status_code=400, detail="Informe cidade, data e tipo")
        day = _parse_day(data)

        result: dict[str, dict[str, list[int]]] = {periodo: {} for periodo in PERIODOS}
        for periodo, assunto, idx in self.repo.get_closed_for_day(self.db, cidade, tipo, day):
            result.setdefault(periodo, {}).setdefault(assunto, []).append(int(idx))
        return result

    def set_slot_state(
        self, data: ClosedSlotUpdate, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        """Open (closed falsy) or close one slot of a grid cell for a day"""
        payload = data.model_dump()
        require_fields(payload, ["cidade", "data", "tipo", "periodo", "assunto", "index"])

        index = _parse_index(data.index)

        day = _parse_day(data.data)
        periodo = normalize_period(data.periodo)

        key = self.repo.resolve_key(self.db, data.cidade, data.tipo, periodo, data.assunto)
        if key is None:
            raise HTTPException(status_code=400, detail="Cidade/tipo/período/assunto inválidos")

        entity_id = "|".join([data.cidade, data.tipo, periodo, data.assunto, day, str(index)])
        snapshot = {
            "cidade": data.cidade,
            "tipo": data.tipo,
            "periodo": periodo,
            "assunto": data.assunto,
            "data": day,
            "index": index,
        }

        if is_falsy_flag(data.closed):
            changes = self.repo.open_slot(self.db, key, day, index)
            logger.info(f"🔓 Slot opened: {entity_id} ({changes} row(s))")
            audit_log(
                self.db,
                request,
                user,
                action="OPEN_SLOT",
                entity_type="vacancy_closed_slot",
                entity_id=entity_id,
                old_value={**snapshot, "closed": True},
                new_value={**snapshot, "closed": False},
            )
            return {"ok": True, "action": "open", "changes": changes}

        created = self.repo.close_slot(self.db, key, day, index, user.id if user else None)
        logger.info(f"🔒 Slot closed: {entity_id} (new={created})")
        audit_log(
            self.db,
            request,
            user,
            action="CLOSE_SLOT",
            entity_type="vacancy_closed_slot",
            entity_id=entity_id,
            old_value={**snapshot, "closed": False},
            new_value={**snapshot, "closed": True},
        )
        return {"ok": True, "action": "close"}

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def get_templates(
        self, city: Optional[str], tipo_os: Optional[str], periodo: Optional[str]
    ) -> list[dict[str, Any]]:
        require_fields(
            {"city": city, "tipo_os": tipo_os, "periodo": periodo}, ["city", "tipo_os", "periodo"]
        )
        rows = self.repo.get_period_templates(
            self.db, city, tipo_os, normalize_period(periodo)
        )
        return [{"assunto": assunto, "capacity": int(cap or 0)} for assunto, cap in rows]

    def _resolve_cell_parents(
        self, city: str, tipo_os: str, periodo: str, active_city: bool = True
    ):
        city_row = self.repo.get_city(self.db, city, active_only=active_city)
        if not city_row:
            raise HTTPException(status_code=404, detail="Cidade não encontrada")
        type_row = self.repo.get_os_type(self.db, tipo_os, active_only=True)
        if not type_row:
            raise HTTPException(status_code=404, detail="Tipo de OS não encontrado")
        period_row = self.repo.get_period(self.db, normalize_period(periodo))
        if not period_row:
            raise HTTPException(status_code=404, detail="Período não encontrado")
        return city_row, type_row, period_row

    def save_templates(
        self, data: TemplatesUpdate, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        """Upsert the capacities of one city/type/period in one transaction"""
        require_fields(data.model_dump(), ["city", "tipo_os", "periodo"])
        if not isinstance(data.capacities, dict):
            raise HTTPException(status_code=400, detail="capacities deve ser um objeto")

        city_row, type_row, period_row = self._resolve_cell_parents(
            data.city, data.tipo_os, data.periodo
        )
        old = self.repo.get_capacities_by_subject(
            self.db, city_row.id, type_row.id, period_row.id
        )

        changes = 0
        new: dict[str, int] = {}
        try:
            for assunto, raw in data.capacities.items():
                subject = self.repo.get_subject(self.db, str(assunto).strip(), active_only=True)
                if not subject:
                    logger.warning(f"⚠️ Skipping unknown or inactive subject: {assunto}")
                    continue
                capacity = _to_capacity(raw)
                key = GridKey(city_row.id, type_row.id, period_row.id, subject.id)
                self.repo.upsert_capacity(self.db, key, capacity)
                new[subject.name] = capacity
                changes += 1
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("❌ Failed to save vacancy templates")
            raise

        logger.info(
            f"✅ Vacancy templates saved: {data.city}/{data.tipo_os}/{period_row.code} ({changes} cells)"
        )
        audit_log(
            self.db,
            request,
            user,
            action="UPDATE_VACANCY_TEMPLATES",
            entity_type="vacancy_templates",
            entity_id=f"{data.city}|{data.tipo_os}|{period_row.code}",
            old_value=old,
            new_value={**old, **new},
        )
        return {"ok": True, "changes": changes}

    def adjust_template(
        self, data: TemplateAdjust, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        """Increment or decrement one cell's capacity by 1, never below 0"""
        require_fields(data.model_dump(), ["city", "tipo_os", "periodo", "assunto", "delta"])

        delta = _as_number(data.delta)
        if delta not in (1, -1):
            raise HTTPException(status_code=400, detail="delta deve ser 1 ou -1")
        delta = int(delta)

        city_row, type_row, period_row = self._resolve_cell_parents(
            data.city, data.tipo_os, data.periodo, active_city=False
        )
        # Quick adjust from the dashboard resolves city and subject by name only
        subject = self.repo.get_subject(self.db, data.assunto)
        if not subject:
            raise HTTPException(status_code=404, detail="Assunto não encontrado")

        key = GridKey(city_row.id, type_row.id, period_row.id, subject.id)
        template = self.repo.get_template(self.db, key)
        old_capacity = int(template.capacity or 0) if template else 0
        capacity = max(0, old_capacity + delta)

        try:
            self.repo.upsert_capacity(self.db, key, capacity)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("❌ Failed to adjust vacancy template")
            raise

        entity_id = f"{data.city}|{data.tipo_os}|{period_row.code}|{subject.name}"
        logger.info(f"🔧 Capacity adjusted: {entity_id} {old_capacity} → {capacity}")
        audit_log(
            self.db,
            request,
            user,
            action="VACANCY_TEMPLATE_ADJUST",
            entity_type="vacancy_template",
            entity_id=entity_id,
            old_value={"capacity": old_capacity},
            new_value={"capacity": capacity, "delta": delta},
        )
        return {"ok": True, "capacity": capacity}

    def get_estrutura_vagas(self) -> dict[str, dict[str, dict[str, dict[str, int]]]]:
        """Nested cidade → tipo → periodo → assunto → capacity from active rows"""
        estrutura: dict[str, dict[str, dict[str, dict[str, int]]]] = {}
        for cidade, tipo, periodo, assunto, cap in self.repo.get_active_templates(self.db):
            estrutura.setdefault(cidade, {}).setdefault(tipo, {}).setdefault(periodo, {})[
                assunto
            ] = int(cap or 0)
        return estrutura
