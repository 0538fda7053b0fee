"""User domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel


class UserCreate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class UserUpdate(BaseModel):
    """password is optional; a blank one keeps the current hash"""

    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[Any] = None


class PermissionsUpdate(BaseModel):
    permissions: Any = None
