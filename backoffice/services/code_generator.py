from __future__ import annotations

import logging
import time

from sqlalchemy.orm import Session

from backoffice.core.config import CODE_MAX_RETRIES, CODE_PREFIX, CODE_WIDTH

logger = logging.getLogger(__name__)


def _parse_sequence(code: str, prefix: str) -> int | None:
    suffix = code[len(prefix):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def next_code(db: Session, column, *, prefix: str = CODE_PREFIX, width: int = CODE_WIDTH) -> str:
    """Próximo código sequencial (W001, W002, ...) para a coluna informada."""
    existing = db.query(column).filter(column.like(f"{prefix}%")).all()
    numbers = [_parse_sequence(code, prefix) for (code,) in existing if code]
    last = max((number for number in numbers if number is not None), default=0)
    return f"{prefix}{str(last + 1).zfill(width)}"


def generate_unique_code(
    db: Session,
    column,
    *,
    prefix: str = CODE_PREFIX,
    width: int = CODE_WIDTH,
    max_retries: int = CODE_MAX_RETRIES,
) -> str:
    for attempt in range(1, max_retries + 1):
        code = next_code(db, column, prefix=prefix, width=width)
        taken = db.query(column).filter(column == code).first()
        if not taken:
            return code
        logger.warning("code collision column=%s code=%s attempt=%s", column.key, code, attempt)

    for attempt in range(1, max_retries + 1):
        fallback = f"{prefix}{str(time.time_ns())[-6:]}"
        if not db.query(column).filter(column == fallback).first():
            logger.warning(
                "code generation fell back to time-derived code column=%s code=%s", column.key, fallback
            )
            return fallback
        logger.warning("fallback code collision column=%s code=%s attempt=%s", column.key, fallback, attempt)

    raise RuntimeError(f"Não foi possível gerar um código único para {column.key}")
