"""Agendamento domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AgendamentoCreate(BaseModel):
    """Schema for opening a new OS (required fields checked by the service)"""

    cliente: Optional[str] = None
    cidade: Optional[str] = None
    assunto: Optional[str] = None
    tipo_os: Optional[str] = None
    observacao: Optional[str] = None


class AgendamentoUpdate(BaseModel):
    """Partial update; only these fields are editable"""

    model_config = ConfigDict(extra="forbid")

    cliente: Optional[str] = None
    cidade: Optional[str] = None
    assunto: Optional[str] = None
    data_hora: Optional[str] = None
    tecnico: Optional[str] = None
    status: Optional[str] = None
    observacoes: Optional[str] = None
    tipo_os: Optional[str] = None
    periodo: Optional[str] = None


class AgendamentoAllocate(BaseModel):
    """Drop of an OS onto a grid slot"""

    data_hora: Optional[str] = None
    periodo: Optional[str] = None
    vaga_assunto: Optional[str] = None
    cidade: Optional[str] = None
    tipo_os: Optional[str] = None

