"""
Audit trail (before/after snapshots) and the legacy activity log.

Neither writer may break the request that triggered it: failures are
rolled back and logged as warnings.
"""

import json
import logging
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import ActivityLog, AuditLog, User

logger = logging.getLogger(__name__)


def get_client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _dump(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def audit_log(
    db: Session,
    request: Optional[Request],
    user: Optional[User],
    *,
    action: str,
    entity_type: str,
    entity_id: Any = None,
    old_value: Any = None,
    new_value: Any = None,
) -> None:
    """Record one audit_logs row"""
    try:
        entry = AuditLog(
            user_id=user.id if user else None,
            username=user.username if user else None,
            action=str(action or ""),
            entity_type=str(entity_type or ""),
            entity_id=str(entity_id) if entity_id is not None else None,
            old_value=_dump(old_value),
            new_value=_dump(new_value),
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent") if request is not None else None,
        )
        db.add(entry)
        db.commit()
    except (SQLAlchemyError, TypeError, ValueError) as e:
        db.rollback()
        logger.warning(f"[AUDIT] Failed to write audit_logs ({action}): {e}")


def activity_log(
    db: Session, request: Optional[Request], username: str, action: str, details: str
) -> None:
    """Record one row in the legacy logs table"""
    try:
        db.add(
            ActivityLog(
                user=username,
                action=action,
                details=details,
                ip_address=get_client_ip(request),
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"[LOG] Failed to write activity log ({action}): {e}")
