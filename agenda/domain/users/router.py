"""User router - accounts, permissions, session user and preferences"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_permission
from ...constants import P
from ...database import get_db
from ...models import User
from .schemas import PermissionsUpdate, UserCreate, UserUpdate
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# USER MANAGEMENT
# ============================================================================


@router.get("/users")
async def list_users(
    current_user: User = Depends(require_permission(P.USERS_VIEW)),
    service: UserService = Depends(get_user_service),
):
    return service.list_users(current_user)


@router.post("/users")
async def create_user(
    data: UserCreate,
    request: Request,
    current_user: User = Depends(require_permission(P.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
):
    return service.create_user(data, current_user, request)


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    request: Request,
    current_user: User = Depends(require_permission(P.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
):
    return service.update_user(user_id, data, current_user, request)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    request: Request,
    current_user: User = Depends(require_permission(P.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
):
    return service.delete_user(user_id, current_user, request)


@router.get("/users/{user_id}/permissions")
async def get_user_permissions(
    user_id: int,
    current_user: User = Depends(require_permission(P.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
):
    """Effective list: the user's override when present, otherwise the role's"""
    return service.get_permissions(user_id)


@router.put("/users/{user_id}/permissions")
async def set_user_permissions(
    user_id: int,
    data: PermissionsUpdate,
    request: Request,
    current_user: User = Depends(require_permission(P.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
):
    return service.set_permissions(user_id, data, current_user, request)


# ============================================================================
# CURRENT USER
# ============================================================================


@router.get("/user")
async def get_session_user(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Current user plus effective permissions, used by the dashboard menus"""
    return service.get_session_user(current_user)


@router.get("/me/preferences")
async def get_preferences(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.get_preferences(current_user)


@router.put("/me/preferences")
async def save_preferences(
    payload: Optional[dict[str, Any]] = Body(None),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.save_preferences(payload, current_user)
