"""Row → JSON helpers shared by routers and the audit trail"""

from datetime import date, datetime
from typing import Any, Optional


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return value


def row_to_dict(obj: Any, exclude: Optional[set[str]] = None) -> Optional[dict[str, Any]]:
    """Column values of an ORM instance, datetimes as 'YYYY-MM-DD HH:MM:SS'"""
    if obj is None:
        return None
    exclude = exclude or set()
    return {
        column.key: _json_value(getattr(obj, column.key))
        for column in obj.__table__.columns
        if column.key not in exclude
    }
