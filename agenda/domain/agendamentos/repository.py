"""Agendamento repository - Database operations for service orders"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...constants import (
    PERIODO_MANHA,
    PERIODO_TARDE,
    STATUS_ABERTA,
    STATUS_AGENDADA,
    STATUS_CANCELADA,
)
from ...models import Agendamento

SORTABLE_COLUMNS = {
    "id": Agendamento.id,
    "data_hora": Agendamento.data_hora,
    "created_at": Agendamento.created_at,
    "updated_at": Agendamento.updated_at,
    "cliente": Agendamento.cliente,
    "cidade": Agendamento.cidade,
    "status": Agendamento.status,
    "tecnico": Agendamento.tecnico,
    "assunto": Agendamento.assunto,
    "tipo_os": Agendamento.tipo_os,
}

# Statuses that do not hold a slot in the grid
NON_OCCUPYING_STATUSES = (STATUS_ABERTA, STATUS_CANCELADA)


def hour_expression():
    return func.strftime("%H", Agendamento.data_hora)


def period_expression():
    """Stored periodo, falling back to the hour of data_hora"""
    return case(
        (Agendamento.periodo.isnot(None), Agendamento.periodo),
        (hour_expression() < "12", PERIODO_MANHA),
        else_=PERIODO_TARDE,
    )


def day_expression():
    return func.date(Agendamento.data_hora)


class AgendamentoRepository:
    """Repository for agendamento database operations"""

    @staticmethod
    def search(
        db: Session,
        filters: dict[str, Any],
        sort_by: str,
        sort_dir: str,
        offset: int,
        limit: int,
    ) -> tuple[list[Agendamento], int]:
        """Filtered, sorted page of rows plus the total count"""
        query = db.query(Agendamento)

        for field in ("cidade", "tecnico", "assunto", "tipo_os"):
            if filters.get(field):
                query = query.filter(getattr(Agendamento, field) == filters[field])

        statuses = filters.get("status")
        if statuses:
            query = query.filter(Agendamento.status.in_(statuses))

        if filters.get("cliente"):
            query = query.filter(Agendamento.cliente.like(f"%{filters['cliente']}%"))

        if filters.get("data"):
            query = query.filter(day_expression() == filters["data"])
        else:
            if filters.get("data_inicio"):
                query = query.filter(day_expression() >= filters["data_inicio"])
            if filters.get("data_fim"):
                query = query.filter(day_expression() <= filters["data_fim"])

        periodo = filters.get("periodo")
        if periodo == PERIODO_MANHA:
            query = query.filter(Agendamento.data_hora.isnot(None), hour_expression() < "12")
        elif periodo == PERIODO_TARDE:
            query = query.filter(Agendamento.data_hora.isnot(None), hour_expression() >= "12")

        total = query.count()

        column = SORTABLE_COLUMNS[sort_by]
        if sort_dir == "asc":
            order = (column.asc(), Agendamento.id.asc())
        else:
            order = (column.desc(), Agendamento.id.desc())

        rows = query.order_by(*order).offset(offset).limit(limit).all()
        return rows, total

    @staticmethod
    def list_agendamentos(
        db: Session,
        cidade: Optional[str] = None,
        data: Optional[str] = None,
        status: Optional[str] = None,
        cliente: Optional[str] = None,
    ) -> list[Agendamento]:
        query = db.query(Agendamento)
        if cidade:
            query = query.filter(Agendamento.cidade == cidade)
        if data:
            query = query.filter(day_expression() == data)
        if status:
            query = query.filter(Agendamento.status == status)
        if cliente:
            query = query.filter(Agendamento.cliente.like(f"%{cliente}%"))
        return query.order_by(Agendamento.data_hora.desc(), Agendamento.id.desc()).all()

    @staticmethod
    def get_unallocated(db: Session) -> list[Agendamento]:
        return (
            db.query(Agendamento)
            .filter(Agendamento.status == STATUS_ABERTA)
            .order_by(Agendamento.created_at.desc(), Agendamento.id.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, agendamento_id: int) -> Optional[Agendamento]:
        return db.query(Agendamento).filter(Agendamento.id == agendamento_id).first()

    @staticmethod
    def create(db: Session, **data) -> Agendamento:
        agendamento = Agendamento(**data)
        db.add(agendamento)
        db.commit()
        db.refresh(agendamento)
        return agendamento

    @staticmethod
    def update(db: Session, agendamento: Agendamento, **updates) -> Agendamento:
        """Apply updates (None included, so fields can be cleared)"""
        for key, value in updates.items():
            setattr(agendamento, key, value)
        agendamento.updated_at = datetime.now()
        db.commit()
        db.refresh(agendamento)
        return agendamento

    @staticmethod
    def delete(db: Session, agendamento: Agendamento) -> None:
        db.delete(agendamento)
        db.commit()

    @staticmethod
    def count_occupied(
        db: Session,
        cidade: str,
        tipo_os: Optional[str],
        assunto: str,
        day: str,
        periodo: str,
        exclude_id: Optional[int] = None,
    ) -> int:
        """OS rows holding a slot in one grid cell on a day"""
        query = db.query(func.count(Agendamento.id)).filter(
            Agendamento.cidade == cidade,
            Agendamento.assunto == assunto,
            Agendamento.data_hora.isnot(None),
            day_expression() == day,
            period_expression() == periodo,
            Agendamento.status.notin_(NON_OCCUPYING_STATUSES),
        )
        if tipo_os is None:
            query = query.filter(Agendamento.tipo_os.is_(None))
        else:
            query = query.filter(Agendamento.tipo_os == tipo_os)
        if exclude_id is not None:
            query = query.filter(Agendamento.id != exclude_id)
        return int(query.scalar() or 0)

    @staticmethod
    def get_scheduled_for_day(db: Session, cidade: str, day: str) -> list[Agendamento]:
        """Agendada rows of a city on a day, by data_hora"""
        return (
            db.query(Agendamento)
            .filter(
                Agendamento.cidade == cidade,
                Agendamento.status == STATUS_AGENDADA,
                day_expression() == day,
            )
            .order_by(Agendamento.data_hora.asc(), Agendamento.id.asc())
            .all()
        )

    @staticmethod
    def get_grid_rows(
        db: Session, cidade: str, tipo_os: str, day: str, statuses: list[str]
    ) -> list[tuple[Agendamento, str]]:
        """(row, effective periodo) of a city/type on a day for the detailed grid"""
        return (
            db.query(Agendamento, period_expression())
            .filter(
                Agendamento.cidade == cidade,
                Agendamento.tipo_os == tipo_os,
                day_expression() == day,
                Agendamento.status.in_(statuses),
            )
            .order_by(Agendamento.data_hora.asc(), Agendamento.id.asc())
            .all()
        )

