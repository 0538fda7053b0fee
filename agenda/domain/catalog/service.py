"""Catalog service - cities, technicians, subjects and the dashboard config"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from ...constants import STATUS_POSSIVEIS
from ...models import City, Subject, Technician, User
from ...services.audit_service import audit_log
from ...shared.serializers import row_to_dict
from ...shared.validators import is_falsy_flag, require_fields
from ..vacancies.service import VacancyService
from .repository import CatalogRepository
from .schemas import CatalogEntryCreate, SubjectToggle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogKind:
    """Texts and audit names of one deactivatable name catalog"""

    model: Any
    entity_type: str
    audit_prefix: str
    label: str
    not_found: str
    duplicate: str
    created: str
    reactivated: str
    removed: str
    activated: str
    deactivated: str


CITY = CatalogKind(
    model=City,
    entity_type="city",
    audit_prefix="CITY",
    label="cidade",
    not_found="Cidade não encontrada",
    duplicate="Já existe uma cidade com esse nome",
    created="Cidade criada com sucesso",
    reactivated="Cidade reativada com sucesso",
    removed="Cidade removida com sucesso",
    activated="Cidade ativada com sucesso",
    deactivated="Cidade desativada com sucesso",
)

TECHNICIAN = CatalogKind(
    model=Technician,
    entity_type="technician",
    audit_prefix="TECHNICIAN",
    label="técnico",
    not_found="Técnico não encontrado",
    duplicate="Já existe um técnico com esse nome",
    created="Técnico criado com sucesso",
    reactivated="Técnico reativado com sucesso",
    removed="Técnico removido com sucesso",
    activated="Técnico ativado com sucesso",
    deactivated="Técnico desativado com sucesso",
)

SUBJECT_NOT_FOUND = "Assunto não encontrado"
SUBJECT_NAME_REQUIRED = "Nome do assunto é obrigatório"


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    # ------------------------------------------------------------------
    # Cities / technicians
    # ------------------------------------------------------------------

    def list_entries(self, kind: CatalogKind) -> list[dict[str, Any]]:
        return [row_to_dict(e) for e in self.repo.list_entries(self.db, kind.model)]

    def _get_entry(self, kind: CatalogKind, entry_id: int):
        entry = self.repo.get_by_id(self.db, kind.model, entry_id)
        if not entry:
            raise HTTPException(status_code=404, detail=kind.not_found)
        return entry

    def _audit(self, kind, request, user, action, entry_id, old, new) -> None:
        audit_log(
            self.db,
            request,
            user,
            action=f"{kind.audit_prefix}_{action}",
            entity_type=kind.entity_type,
            entity_id=entry_id,
            old_value=old,
            new_value=new,
        )

    def create_entry(
        self,
        kind: CatalogKind,
        data: CatalogEntryCreate,
        user: User,
        request: Optional[Request] = None,
    ) -> dict[str, Any]:
        """Insert a name, or reactivate it when an inactive one already exists"""
        require_fields(data.model_dump(), ["name"])
        name = data.name.strip()

        existing = self.repo.get_by_name(self.db, kind.model, name, case_insensitive=True)
        if existing:
            if existing.is_active:
                raise HTTPException(status_code=409, detail=kind.duplicate)
            old = row_to_dict(existing)
            existing = self.repo.update(self.db, existing, is_active=1)
            logger.info(f"♻️ {kind.label} '{existing.name}' reactivated by {user.username}")
            self._audit(kind, request, user, "REACTIVATE", existing.id, old, row_to_dict(existing))
            return {"message": kind.reactivated, "id": existing.id}

        entry = self.repo.create(self.db, kind.model, name)
        logger.info(f"✅ {kind.label} '{entry.name}' created by {user.username}")
        self._audit(kind, request, user, "CREATE", entry.id, None, row_to_dict(entry))
        return {"message": kind.created, "id": entry.id}

    def deactivate_entry(
        self, kind: CatalogKind, entry_id: int, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        """Removing keeps the row (OS reference names), only is_active drops"""
        entry = self._get_entry(kind, entry_id)
        old = row_to_dict(entry)
        entry = self.repo.update(self.db, entry, is_active=0)
        logger.info(f"🗑️ {kind.label} '{entry.name}' deactivated by {user.username}")
        self._audit(kind, request, user, "DEACTIVATE", entry.id, old, row_to_dict(entry))
        return {"message": kind.removed}

    def toggle_entry(
        self, kind: CatalogKind, entry_id: int, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        entry = self._get_entry(kind, entry_id)
        old = row_to_dict(entry)
        active = 0 if entry.is_active else 1
        entry = self.repo.update(self.db, entry, is_active=active)
        self._audit(
            kind,
            request,
            user,
            "REACTIVATE" if active else "DEACTIVATE",
            entry.id,
            old,
            row_to_dict(entry),
        )
        return {"message": kind.activated if active else kind.deactivated}

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    def list_subjects(self, active: Optional[str] = None) -> list[dict[str, Any]]:
        only_active = str(active if active is not None else "1") != "0"
        return [
            {"id": s.id, "name": s.name, "is_active": s.is_active}
            for s in self.repo.list_subjects(self.db, only_active)
        ]

    def _get_subject(self, subject_id: int) -> Subject:
        subject = self.repo.get_by_id(self.db, Subject, subject_id)
        if not subject:
            raise HTTPException(status_code=404, detail=SUBJECT_NOT_FOUND)
        return subject

    def upsert_subject(
        self, data: CatalogEntryCreate, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        """Create a subject, or reactivate it when it already exists"""
        require_fields(data.model_dump(), ["name"])
        name = data.name.strip()

        existing = self.repo.get_by_name(self.db, Subject, name)
        old = row_to_dict(existing)
        if existing:
            subject = self.repo.update(self.db, existing, is_active=1)
        else:
            subject = self.repo.create(self.db, Subject, name)
        logger.info(f"✅ Subject '{name}' upserted by {user.username}")

        audit_log(
            self.db,
            request,
            user,
            action="UPSERT_SUBJECT",
            entity_type="subject",
            entity_id=subject.id,
            old_value=old,
            new_value=row_to_dict(subject),
        )
        return {"ok": True, "name": name}

    def rename_subject(
        self, subject_id: int, data: CatalogEntryCreate, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        name = (data.name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail=SUBJECT_NAME_REQUIRED)

        subject = self._get_subject(subject_id)
        if self.repo.name_taken(self.db, Subject, name, exclude_id=subject_id):
            raise HTTPException(status_code=409, detail="Já existe um assunto com esse nome")

        old = row_to_dict(subject)
        subject = self.repo.update(self.db, subject, name=name)
        logger.info(f"📝 Subject #{subject_id} renamed to '{name}' by {user.username}")

        audit_log(
            self.db,
            request,
            user,
            action="RENAME_SUBJECT",
            entity_type="subject",
            entity_id=subject_id,
            old_value=old,
            new_value=row_to_dict(subject),
        )
        return {"ok": True}

    def toggle_subject(
        self, subject_id: int, data: SubjectToggle, user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        """Set is_active from the body: truthy activates, anything else deactivates"""
        subject = self._get_subject(subject_id)
        active = 1 if data.is_active and not is_falsy_flag(data.is_active) else 0

        old = row_to_dict(subject)
        subject = self.repo.update(self.db, subject, is_active=active)

        audit_log(
            self.db,
            request,
            user,
            action="ACTIVATE_SUBJECT" if active else "DEACTIVATE_SUBJECT",
            entity_type="subject",
            entity_id=subject_id,
            old_value=old,
            new_value=row_to_dict(subject),
        )
        return {"ok": True}

    # ------------------------------------------------------------------
    # Dashboard config
    # ------------------------------------------------------------------

    def get_config(self) -> dict[str, Any]:
        """Everything the dashboard needs to draw its filters and the grid"""
        return {
            "cidades": self.repo.active_names(self.db, City),
            "tecnicos": self.repo.active_names(self.db, Technician),
            "assuntos": self.repo.active_names(self.db, Subject),
            "tiposOS": self.repo.active_os_types(self.db),
            "statusPossiveis": list(STATUS_POSSIVEIS),
            "estruturaVagas": VacancyService(self.db).get_estrutura_vagas(),
        }
