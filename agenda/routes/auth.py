import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user, get_effective_permissions
from ..database import get_db
from ..models import User
from ..security_utils import create_access_token, verify_password_bcrypt
from ..services.audit_service import activity_log

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
async def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Exchange username/password for a bearer token"""
    if not data.username or not data.password:
        raise HTTPException(status_code=400, detail="Usuário e senha são obrigatórios")

    user = db.query(User).filter(User.username == data.username).first()
    if not user or not user.is_active or not verify_password_bcrypt(data.password, user.password):
        logger.warning(f"⚠️ Failed login for '{data.username}'")
        raise HTTPException(status_code=401, detail="Usuário ou senha inválidos")

    permissions = get_effective_permissions(db, user)
    activity_log(db, request, user.username, "LOGIN", "Usuário fez login")
    logger.info(f"🔐 User '{user.username}' logged in ({user.role})")

    return {
        "message": "Login bem-sucedido",
        "token": create_access_token(user),
        "token_type": "bearer",
        "user": {
            "id": user.id,
            "username": user.username,
            "role": user.role,
            "permissions": permissions,
        },
    }


async def _logout(request: Request, current_user: User, db: Session) -> dict:
    # Tokens are stateless; logout only records the event
    activity_log(db, request, current_user.username, "LOGOUT", "Usuário fez logout")
    logger.info(f"👋 User '{current_user.username}' logged out")
    return {"message": "Logout realizado com sucesso"}


@router.post("/logout")
async def logout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await _logout(request, current_user, db)


@router.get("/logout")
async def logout_legacy(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Old dashboard link"""
    return await _logout(request, current_user, db)
