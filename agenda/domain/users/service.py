"""User service - accounts, permission overrides and preferences"""

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from ...auth import get_effective_permissions
from ...constants import ROLES
from ...models import User
from ...security_utils import hash_password_bcrypt
from ...services.audit_service import activity_log, audit_log
from ...shared.validators import require_fields
from .repository import UserRepository
from .schemas import PermissionsUpdate, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "Usuário não encontrado"
DUPLICATE_USERNAME = "Nome de usuário já existe"


def _public(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "role": user.role,
        "is_active": user.is_active,
    }


def _check_role(role: str) -> None:
    if role not in ROLES:
        raise HTTPException(status_code=400, detail="Função inválida")


def _active_flag(value: Any) -> int:
    if value is None:
        return 1
    try:
        return 1 if int(value) else 0
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail="is_active inválido") from e


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def _get_user(self, user_id: int) -> User:
        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail=USER_NOT_FOUND)
        return user

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_users(self, current_user: User) -> list[dict[str, Any]]:
        logger.info(f"[users] '{current_user.username}' listed users")
        return [
            {
                **_public(u),
                "created_at": u.created_at.isoformat(sep=" ") if u.created_at else None,
                "permissions": [p.permission for p in u.permissions if p.permission],
            }
            for u in self.repo.list_users(self.db)
        ]

    def create_user(
        self, data: UserCreate, current_user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        require_fields(data.model_dump(), ["username", "password", "role"])
        _check_role(data.role)

        if self.repo.get_by_username(self.db, data.username):
            raise HTTPException(status_code=400, detail=DUPLICATE_USERNAME)

        user = self.repo.create(
            self.db,
            username=data.username,
            password=hash_password_bcrypt(data.password),
            role=data.role,
            is_active=1,
        )
        logger.info(f"👤 User '{user.username}' ({user.role}) created by {current_user.username}")

        audit_log(
            self.db,
            request,
            current_user,
            action="CREATE_USER",
            entity_type="user",
            entity_id=user.id,
            new_value=_public(user),
        )
        activity_log(
            self.db,
            request,
            current_user.username,
            "CREATE_USER",
            f"Usuário '{user.username}' criado com função '{user.role}'",
        )
        return {
            "message": "Usuário criado com sucesso",
            "user": {"id": user.id, "username": user.username, "role": user.role},
        }

    def update_user(
        self,
        user_id: int,
        data: UserUpdate,
        current_user: User,
        request: Optional[Request] = None,
    ) -> dict[str, Any]:
        require_fields(data.model_dump(), ["username", "role"])
        _check_role(data.role)

        user = self._get_user(user_id)
        if self.repo.get_by_username(self.db, data.username, exclude_id=user_id):
            raise HTTPException(status_code=400, detail=DUPLICATE_USERNAME)

        old = _public(user)
        updates: dict[str, Any] = {
            "username": data.username,
            "role": data.role,
            "is_active": _active_flag(data.is_active),
        }
        if data.password and data.password.strip():
            updates["password"] = hash_password_bcrypt(data.password)

        user = self.repo.update(self.db, user, **updates)
        logger.info(f"📝 User #{user_id} updated by {current_user.username}")

        audit_log(
            self.db,
            request,
            current_user,
            action="UPDATE_USER",
            entity_type="user",
            entity_id=user_id,
            old_value=old,
            new_value=_public(user),
        )
        activity_log(
            self.db,
            request,
            current_user.username,
            "UPDATE_USER",
            f"Usuário '{user.username}' (ID: {user_id}) atualizado",
        )
        return {"message": "Usuário atualizado com sucesso"}

    def delete_user(
        self, user_id: int, current_user: User, request: Optional[Request] = None
    ) -> dict[str, Any]:
        if user_id == current_user.id:
            raise HTTPException(status_code=400, detail="Você não pode excluir sua própria conta")

        user = self._get_user(user_id)
        old = _public(user)
        self.repo.delete(self.db, user)
        logger.info(f"🗑️ User #{user_id} deleted by {current_user.username}")

        audit_log(
            self.db,
            request,
            current_user,
            action="DELETE_USER",
            entity_type="user",
            entity_id=user_id,
            old_value=old,
        )
        activity_log(
            self.db, request, current_user.username, "DELETE_USER", f"Usuário ID {user_id} excluído"
        )
        return {"message": "Usuário excluído com sucesso"}

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def get_permissions(self, user_id: int) -> list[str]:
        return get_effective_permissions(self.db, self._get_user(user_id))

    def set_permissions(
        self,
        user_id: int,
        data: PermissionsUpdate,
        current_user: User,
        request: Optional[Request] = None,
    ) -> dict[str, Any]:
        """
        Replace the user's override list.

        An empty list removes the override so the role's permissions apply
        again.
        """
        user = self._get_user(user_id)
        raw = data.permissions if isinstance(data.permissions, list) else []

        normalized: list[str] = []
        for p in raw:
            name = str(p).strip()
            if name and name not in normalized:
                normalized.append(name)

        old = self.repo.get_override_permissions(self.db, user.id)
        self.repo.replace_permissions(self.db, user.id, normalized)
        logger.info(
            f"🔑 Permissions of user #{user.id} replaced by {current_user.username} ({len(normalized)})"
        )

        audit_log(
            self.db,
            request,
            current_user,
            action="UPDATE_PERMISSIONS",
            entity_type="user_permissions",
            entity_id=user.id,
            old_value={"user_id": user.id, "permissions": old},
            new_value={"user_id": user.id, "permissions": normalized},
        )

        if not normalized:
            return {"message": "Permissões atualizadas (nenhuma override)", "permissions": []}

        activity_log(
            self.db,
            request,
            current_user.username,
            "UPDATE_PERMISSIONS",
            f"Permissões do usuário ID {user.id} atualizadas ({len(normalized)})",
        )
        return {"message": "Permissões atualizadas com sucesso", "permissions": normalized}

    # ------------------------------------------------------------------
    # Current user
    # ------------------------------------------------------------------

    def get_session_user(self, current_user: User) -> dict[str, Any]:
        return {
            **_public(current_user),
            "permissions": get_effective_permissions(self.db, current_user),
        }

    def get_preferences(self, current_user: User) -> dict[str, Optional[str]]:
        return self.repo.get_preferences(self.db, current_user.id)

    def save_preferences(self, payload: Optional[dict[str, Any]], current_user: User) -> dict[str, Any]:
        """Accepts {key, value} or a plain object such as {"theme": "dark"}"""
        body = payload or {}
        if body.get("key"):
            entries = [(body["key"], body.get("value"))]
        else:
            entries = list(body.items())

        if not entries:
            raise HTTPException(status_code=400, detail="Nada para salvar")

        self.repo.save_preferences(
            self.db,
            current_user.id,
            [(str(k), None if v is None else str(v)) for k, v in entries],
        )
        return {"ok": True}
