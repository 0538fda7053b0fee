"""Audit service - read side of the audit trail and activity log"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import AuditLog
from ...shared.serializers import row_to_dict
from ...shared.validators import clamp_int, db_int_or_none
from .repository import AuditRepository

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


class AuditService:
    """Service layer for audit queries"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuditRepository()

    def search(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> dict[str, Any]:
        """Paged audit rows, newest first"""
        page_num = clamp_int(page, 1, 1)
        lim = clamp_int(limit, DEFAULT_LIMIT, 1, MAX_LIMIT)

        uid = None
        if user_id:
            uid = db_int_or_none(user_id)
            if uid is None:
                logger.warning(f"⚠️ Ignoring invalid audit user_id filter: {user_id}")

        rows, total = self.repo.search(
            self.db,
            {
                "from": date_from,
                "to": date_to,
                "user_id": uid,
                "action": action,
                "entity_type": entity_type,
            },
            (page_num - 1) * lim,
            lim,
        )
        return {
            "rows": [row_to_dict(r) for r in rows],
            "meta": {"page": page_num, "limit": lim, "total": total},
        }

    def get_meta(self) -> dict[str, Any]:
        """Values for the audit screen filters"""
        return {
            "actions": self.repo.distinct_values(self.db, AuditLog.action),
            "entity_types": self.repo.distinct_values(self.db, AuditLog.entity_type),
            "users": [
                {"id": uid, "username": username}
                for uid, username in self.repo.list_usernames(self.db)
            ],
        }

    def list_activity(self, page: Optional[str] = None, limit: Optional[str] = None) -> list[dict]:
        page_num = clamp_int(page, 1, 1)
        lim = clamp_int(limit, DEFAULT_LIMIT, 1, MAX_LIMIT)
        return [
            row_to_dict(r) for r in self.repo.list_activity(self.db, (page_num - 1) * lim, lim)
        ]
