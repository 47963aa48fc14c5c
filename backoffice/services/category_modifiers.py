from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.models.category_modifier_link import CategoryModifierLink
from backoffice.models.menu_category import MenuCategory
from backoffice.models.modifier_group import ModifierGroup
from backoffice.services.errors import AssignmentValidationError, NotFoundError

logger = logging.getLogger(__name__)


def category_group_codes(db: Session, menu_category_code: Optional[str]) -> list[str]:
    """Grupos herdáveis da categoria, na ordem em que foram ligados."""
    if not menu_category_code:
        return []
    rows = (
        db.query(CategoryModifierLink.modifier_group_code)
        .filter(CategoryModifierLink.menu_category_code == menu_category_code)
        .order_by(CategoryModifierLink.id.asc())
        .all()
    )
    return [code for (code,) in rows]


def get_category_or_raise(db: Session, menu_category_code: str) -> MenuCategory:
    category = (
        db.query(MenuCategory)
        .filter(MenuCategory.menu_category_code == menu_category_code)
        .first()
    )
    if not category:
        raise NotFoundError("Categoria", menu_category_code)
    return category


def link_group_to_category(
    db: Session,
    *,
    menu_category_code: str,
    modifier_group_code: str,
    store_code: Optional[str] = None,
) -> CategoryModifierLink:
    category = get_category_or_raise(db, menu_category_code)
    group = (
        db.query(ModifierGroup)
        .filter(ModifierGroup.modifier_group_code == modifier_group_code)
        .first()
    )
    if not group:
        raise NotFoundError("Grupo de modificadores", modifier_group_code)

    existing = (
        db.query(CategoryModifierLink)
        .filter(
            CategoryModifierLink.menu_category_code == menu_category_code,
            CategoryModifierLink.modifier_group_code == modifier_group_code,
        )
        .first()
    )
    if existing:
        raise AssignmentValidationError(
            f"Grupo {modifier_group_code} já vinculado à categoria {menu_category_code}"
        )

    link = CategoryModifierLink(
        menu_category_code=menu_category_code,
        modifier_group_code=modifier_group_code,
        store_code=store_code,
    )
    db.add(link)
    category.modifiers_changed_at = datetime.now(timezone.utc)
    db.flush()
    logger.info(
        "category modifier link created category=%s group=%s",
        menu_category_code,
        modifier_group_code,
    )
    return link


def unlink_group_from_category(db: Session, *, menu_category_code: str, modifier_group_code: str) -> None:
    category = get_category_or_raise(db, menu_category_code)
    deleted = (
        db.query(CategoryModifierLink)
        .filter(
            CategoryModifierLink.menu_category_code == menu_category_code,
            CategoryModifierLink.modifier_group_code == modifier_group_code,
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Vínculo categoria/grupo", f"{menu_category_code}/{modifier_group_code}")
    category.modifiers_changed_at = datetime.now(timezone.utc)
    db.flush()
    logger.info(
        "category modifier link removed category=%s group=%s",
        menu_category_code,
        modifier_group_code,
    )


def categories_by_group(db: Session, group_codes: list[str]) -> dict[str, list[dict]]:
    if not group_codes:
        return {}
    rows = (
        db.query(CategoryModifierLink.modifier_group_code, MenuCategory.menu_category_code, MenuCategory.name)
        .join(MenuCategory, MenuCategory.menu_category_code == CategoryModifierLink.menu_category_code)
        .filter(CategoryModifierLink.modifier_group_code.in_(group_codes))
        .order_by(CategoryModifierLink.id.asc())
        .all()
    )
    mapping: dict[str, list[dict]] = {}
    for group_code, category_code, category_name in rows:
        mapping.setdefault(group_code, []).append({"code": category_code, "name": category_name})
    return mapping
