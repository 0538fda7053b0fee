"""Report repository - aggregate queries over service orders"""

from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Agendamento
from ..agendamentos.repository import day_expression


class ReportRepository:
    """Repository for report queries"""

    @staticmethod
    def summary(db: Session, filters: dict[str, Any]) -> list[tuple]:
        """Counts grouped by cidade, tecnico, assunto, tipo_os and status"""
        tecnico = func.coalesce(Agendamento.tecnico, "-")
        assunto = func.coalesce(Agendamento.assunto, "-")
        tipo_os = func.coalesce(Agendamento.tipo_os, "-")

        query = db.query(
            Agendamento.cidade,
            tecnico.label("tecnico"),
            assunto.label("assunto"),
            tipo_os.label("tipo_os"),
            Agendamento.status,
            func.count(Agendamento.id).label("total"),
        )

        if filters.get("data_inicio"):
            query = query.filter(day_expression() >= filters["data_inicio"])
        if filters.get("data_fim"):
            query = query.filter(day_expression() <= filters["data_fim"])
        for field in ("cidade", "tecnico", "assunto", "tipo_os"):
            if filters.get(field):
                query = query.filter(getattr(Agendamento, field) == filters[field])
        if filters.get("status"):
            query = query.filter(Agendamento.status.in_(filters["status"]))

        group = (Agendamento.cidade, tecnico, assunto, tipo_os, Agendamento.status)
        return query.group_by(*group).order_by(*(c.asc() for c in group)).all()
