from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.deps import get_current_admin_user
from backoffice.models.admin_user import AdminUser
from backoffice.services.admin_audit import log_admin_action
from backoffice.services.admin_auth import (
    clear_admin_session_cookie,
    create_admin_session,
    set_admin_session_cookie,
)
from backoffice.services.passwords import verify_password

router = APIRouter(prefix="/api/admin/auth", tags=["admin-auth"])
logger = logging.getLogger(__name__)


class AdminLoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminUserRead(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: str
    active: bool


def _user_to_dict(user: AdminUser) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "active": user.active,
    }


@router.post("/login", response_model=AdminUserRead)
def admin_login(
    payload: AdminLoginPayload,
    response: Response,
    db: Session = Depends(get_db),
):
    normalized_email = payload.email.strip().lower()
    user = db.query(AdminUser).filter(func.lower(AdminUser.email) == normalized_email).first()
    if not user or not user.active or not verify_password(payload.password, user.password_hash):
        log_admin_action(
            db,
            user_id=user.id if user else 0,
            action="login_failed",
            entity_type="admin_user",
            meta={"email": normalized_email},
        )
        db.commit()
        logger.warning("Admin login failed: email=%s", normalized_email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")

    token = create_admin_session({"user_id": user.id, "role": user.role})
    set_admin_session_cookie(response, token)

    log_admin_action(db, user_id=user.id, action="login_success")
    db.commit()
    return _user_to_dict(user)


@router.post("/logout")
def admin_logout(response: Response):
    clear_admin_session_cookie(response)
    return {"ok": True}


@router.get("/me", response_model=AdminUserRead)
def admin_me(user: AdminUser = Depends(get_current_admin_user)):
    return _user_to_dict(user)
