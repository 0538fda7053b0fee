"""Shared validation utilities"""

from datetime import date, datetime
from typing import Any, Iterable, Optional

from fastapi import HTTPException

from ..constants import PERIOD_DEFAULT_HOUR, PERIODO_MANHA, PERIODO_TARDE

INVALID_DATA = "Dados inválidos"

# Largest value bound into an INTEGER column or LIMIT/OFFSET
MAX_DB_INT = 2**31 - 1


def validate_required(data: dict[str, Any], required_fields: Iterable[str]) -> list[str]:
    """
    Return one message per missing field.

    0 and False are valid values (slot index 0, closed=false); only absent,
    None and blank strings count as missing.
    """
    errors = []
    for field in required_fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and value.strip() == ""):
            errors.append(f"Campo '{field}' é obrigatório")
    return errors


def require_fields(
    data: dict[str, Any], required_fields: Iterable[str], message: str = INVALID_DATA
) -> None:
    """Raise a 400 listing every missing field"""
    errors = validate_required(data, required_fields)
    if errors:
        raise HTTPException(status_code=400, detail={"error": message, "details": errors})


def validate_day(value: str) -> str:
    """
    Validate a YYYY-MM-DD day string.

    Raises:
        ValueError: If the value is not a calendar date
    """
    try:
        return date.fromisoformat(str(value).strip()).isoformat()
    except ValueError as e:
        raise ValueError(f"Data inválida: {value}") from e


def period_from_datetime(dt: datetime) -> str:
    return PERIODO_MANHA if dt.hour < 12 else PERIODO_TARDE


def normalize_period(value: Optional[str]) -> Optional[str]:
    """Accept MANHA without the tilde, as typed in filters"""
    if value is None:
        return None
    p = str(value).strip().upper()
    if p in ("MANHÃ", "MANHA"):
        return PERIODO_MANHA
    if p == "TARDE":
        return PERIODO_TARDE
    return p


def parse_data_hora(value: Any, periodo: Optional[str] = None) -> datetime:
    """
    Parse an ISO date/datetime sent by the dashboard.

    A bare YYYY-MM-DD gets the period's default hour (08:00 morning,
    14:00 afternoon). Timezone-aware values keep their wall time and drop
    the offset, since the column holds naive datetimes.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if len(text) == 10:
            day = date.fromisoformat(text)
            hour = PERIOD_DEFAULT_HOUR.get(normalize_period(periodo) or "", 8)
            return datetime(day.year, day.month, day.day, hour, 0)
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.replace(tzinfo=None)
    return dt


def is_falsy_flag(value: Any) -> bool:
    """closed=false / 0 / "false" reopen a slot; anything else closes it"""
    return value is False or value == 0 or value == "false"


def clamp_int(value: Any, default: int, minimum: int, maximum: int = MAX_DB_INT) -> int:
    """Lenient query-string integer: unparsable → default, then clamped to range"""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        number = default
    return min(maximum, max(minimum, number))


def db_int_or_none(value: Any) -> Optional[int]:
    """Integer that SQLite can bind, None when unparsable or out of range"""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if -MAX_DB_INT <= number <= MAX_DB_INT else None


def split_csv(value: Optional[str]) -> list[str]:
    """'Agendada, Concluída' → ['Agendada', 'Concluída']"""
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]
