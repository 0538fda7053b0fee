import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import RolePermission, User, UserPermission
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

NOT_AUTHENTICATED = "Não autenticado"


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user row"""

    if not credentials:
        logger.info(f"[auth] Blocked unauthenticated request: {request.method} {request.url.path}")
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)

    payload = verify_jwt_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED) from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        logger.warning(f"⚠️ Token for missing or inactive user id={user_id}")
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)

    return user


def get_effective_permissions(db: Session, user: User) -> list[str]:
    """
    Effective permissions of a user.

    If the user has at least one row in user_permissions, ONLY that list is
    used (full override, which lets an admin "uncheck" role permissions).
    Otherwise the role's permissions apply. Admin has no implicit bypass.
    """
    if not user or not user.id:
        return []

    own = [
        p
        for (p,) in db.query(UserPermission.permission)
        .filter(UserPermission.user_id == user.id)
        .order_by(UserPermission.id)
        .all()
        if p
    ]
    if own:
        return own

    role = user.role or "user"
    return [
        p
        for (p,) in db.query(RolePermission.permission)
        .filter(RolePermission.role == role)
        .order_by(RolePermission.id)
        .all()
        if p
    ]


def require_permission(permission: str) -> Callable:
    """
    Dependency factory gating a route on one permission.

    Permissions are recomputed from the database on every request so that an
    admin change takes effect immediately.

    Example usage:
        @router.delete("/agendamentos/{id}")
        def delete(current_user: User = Depends(require_permission("agenda.delete"))):
            ...
    """

    async def checker(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        perms = get_effective_permissions(db, current_user)
        if permission in perms:
            return current_user

        logger.info(f"🚫 User '{current_user.username}' denied: missing {permission}")
        raise HTTPException(
            status_code=403, detail={"error": "Acesso negado", "permission": permission}
        )

    return checker
