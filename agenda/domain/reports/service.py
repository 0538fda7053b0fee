"""Report service - production summary"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...shared.validators import split_csv
from .repository import ReportRepository

logger = logging.getLogger(__name__)


class ReportService:
    """Service layer for reports"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReportRepository()

    def get_summary(
        self,
        data_inicio: Optional[str] = None,
        data_fim: Optional[str] = None,
        cidade: Optional[str] = None,
        tecnico: Optional[str] = None,
        assunto: Optional[str] = None,
        tipo_os: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        filters = {
            "data_inicio": data_inicio,
            "data_fim": data_fim,
            "cidade": cidade,
            "tecnico": tecnico,
            "assunto": assunto,
            "tipo_os": tipo_os,
            "status": split_csv(status),
        }
        rows = self.repo.summary(self.db, filters)
        return {
            "rows": [
                {
                    "cidade": r.cidade,
                    "tecnico": r.tecnico,
                    "assunto": r.assunto,
                    "tipo_os": r.tipo_os,
                    "status": r.status,
                    "total": int(r.total),
                }
                for r in rows
            ]
        }
