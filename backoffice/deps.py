from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from backoffice.core.config import STORE_CODE
from backoffice.core.database import get_db
from backoffice.models.admin_user import AdminUser
from backoffice.services.admin_auth import ADMIN_SESSION_COOKIE, decode_admin_session

logger = logging.getLogger(__name__)

SUPER_ADMIN = "super_admin"
OUTLET_MANAGER = "outlet_manager"
STAFF = "staff"

WRITE_ROLES = (SUPER_ADMIN, OUTLET_MANAGER)
DELETE_ROLES = (SUPER_ADMIN,)


def _normalize_admin_role(role: str | None) -> str:
    return (role or "").strip().lower()


def _log_access_denied(*, reason: str, user: AdminUser, request: Request) -> None:
    endpoint = f"{request.method} {request.url.path}"
    logger.warning(
        "Access denied (%s): user_id=%s user_role=%s endpoint=%s",
        reason,
        getattr(user, "id", None),
        getattr(user, "role", None),
        endpoint,
    )


def get_current_admin_user(
    request: Request,
    db: Session = Depends(get_db),
) -> AdminUser:
    token = request.cookies.get(ADMIN_SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin não autenticado")

    payload = decode_admin_session(token)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão expirada")

    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão inválida")

    user = (
        db.query(AdminUser)
        .filter(AdminUser.id == int(user_id), AdminUser.active.is_(True))
        .first()
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin não encontrado")

    request.state.user = user
    return user


def require_admin_user(
    request: Request,
    db: Session = Depends(get_db),
) -> AdminUser:
    return get_current_admin_user(request, db)


def require_role(roles: Iterable[str]):
    allowed = {_normalize_admin_role(role) for role in roles}
    allowed.add(SUPER_ADMIN)

    def _dependency(
        request: Request,
        user: AdminUser = Depends(require_admin_user),
    ) -> AdminUser:
        if _normalize_admin_role(user.role) not in allowed:
            _log_access_denied(reason="role_denied", user=user, request=request)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissão insuficiente")
        return user

    return _dependency


def get_store_code() -> str | None:
    return STORE_CODE
