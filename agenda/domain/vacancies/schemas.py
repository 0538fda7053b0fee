"""Vacancy domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel


class ClosedSlotUpdate(BaseModel):
    """Open or close one slot; index and closed are validated by the service"""

    cidade: Optional[str] = None
    data: Optional[str] = None
    tipo: Optional[str] = None
    periodo: Optional[str] = None
    assunto: Optional[str] = None
    index: Any = None
    closed: Any = None


class TemplatesUpdate(BaseModel):
    city: Optional[str] = None
    tipo_os: Optional[str] = None
    periodo: Optional[str] = None
    capacities: Any = None


class TemplateAdjust(BaseModel):
    city: Optional[str] = None
    tipo_os: Optional[str] = None
    periodo: Optional[str] = None
    assunto: Optional[str] = None
    delta: Any = None
