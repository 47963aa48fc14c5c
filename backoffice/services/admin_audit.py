from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from backoffice.models.admin_audit_log import AdminAuditLog


def log_admin_action(
    db: Session,
    *,
    user_id: int,
    action: str,
    entity_type: Optional[str] = None,
    entity_code: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> AdminAuditLog:
    """Adiciona o registro à sessão; o commit fica com quem chama."""
    entry = AdminAuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_code=entity_code,
        meta_json=json.dumps(meta, default=str) if meta else None,
    )
    db.add(entry)
    return entry
