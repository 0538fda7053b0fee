"""Catalog domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel


class CatalogEntryCreate(BaseModel):
    """City, technician or subject name"""

    name: Optional[str] = None


class SubjectToggle(BaseModel):
    is_active: Any = None
