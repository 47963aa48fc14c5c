from __future__ import annotations

from sqlalchemy import func, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from backoffice.models.admin_user import AdminUser
from backoffice.services.passwords import hash_password

VALID_ROLES = {"super_admin", "outlet_manager", "staff"}


def ensure_admin_users_table(engine: Engine) -> None:
    if not inspect(engine).has_table("admin_users"):
        raise RuntimeError("Tabela admin_users não encontrada. Rode `alembic upgrade head` primeiro.")


def upsert_admin_user(
    db: Session,
    *,
    email: str,
    name: str,
    role: str,
    password: str | None,
) -> tuple[AdminUser, bool]:
    normalized_email = email.strip().lower()
    normalized_role = role.strip().lower()
    if normalized_role not in VALID_ROLES:
        raise ValueError(f"Role inválida: {role}")

    existing = db.query(AdminUser).filter(func.lower(AdminUser.email) == normalized_email).first()
    if existing:
        existing.name = name
        existing.role = normalized_role
        existing.active = True
        if password:
            existing.password_hash = hash_password(password)
        db.commit()
        db.refresh(existing)
        return existing, False

    if not password:
        raise ValueError("Senha é obrigatória para criar um novo admin.")

    admin = AdminUser(
        email=normalized_email,
        name=name,
        password_hash=hash_password(password),
        role=normalized_role,
        active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin, True
