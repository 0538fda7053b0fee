"""Audit repository - audit trail and legacy activity log queries"""

from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import ActivityLog, AuditLog, User


class AuditRepository:
    """Repository for audit_logs and logs queries"""

    @staticmethod
    def search(
        db: Session, filters: dict[str, Any], offset: int, limit: int
    ) -> tuple[list[AuditLog], int]:
        query = db.query(AuditLog)

        if filters.get("from"):
            query = query.filter(func.date(AuditLog.created_at) >= filters["from"])
        if filters.get("to"):
            query = query.filter(func.date(AuditLog.created_at) <= filters["to"])
        if filters.get("user_id") is not None:
            query = query.filter(AuditLog.user_id == filters["user_id"])
        if filters.get("action"):
            query = query.filter(AuditLog.action == filters["action"])
        if filters.get("entity_type"):
            query = query.filter(AuditLog.entity_type == filters["entity_type"])

        total = query.count()
        rows = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def distinct_values(db: Session, column) -> list[str]:
        return [v for (v,) in db.query(column).distinct().order_by(column).all() if v is not None]

    @staticmethod
    def list_usernames(db: Session) -> list[tuple[int, str]]:
        return db.query(User.id, User.username).order_by(User.username).all()

    @staticmethod
    def list_activity(db: Session, offset: int, limit: int) -> list[ActivityLog]:
        return (
            db.query(ActivityLog)
            .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

