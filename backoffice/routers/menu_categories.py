from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.deps import DELETE_ROLES, WRITE_ROLES, get_store_code, require_admin_user, require_role
from backoffice.models.admin_user import AdminUser
from backoffice.models.category_modifier_link import CategoryModifierLink
from backoffice.models.item_modifier_assignment import ItemModifierAssignment
from backoffice.models.menu_category import MenuCategory
from backoffice.models.menu_item import MenuItem
from backoffice.models.modifier_group import ModifierGroup
from backoffice.schemas.menu import (
    CategoryModifierLinkCreate,
    CategoryModifierLinkOut,
    MenuCategoryCreate,
    MenuCategoryOut,
    MenuCategoryUpdate,
)
from backoffice.services.admin_audit import log_admin_action
from backoffice.services.category_modifiers import (
    get_category_or_raise,
    link_group_to_category,
    unlink_group_from_category,
)
from backoffice.services.code_generator import generate_unique_code
from backoffice.services.errors import ModifierAssignmentError, to_http_exception
from backoffice.services.modifier_assignments import reapply_category

router = APIRouter(prefix="/api/menu/categories", tags=["menu-categories"])


def _category_to_dict(category: MenuCategory) -> dict:
    return {
        "menu_category_code": category.menu_category_code,
        "name": category.name,
        "color_code": category.color_code,
        "display_order": category.display_order,
        "is_active": category.is_active,
        "modifiers_changed_at": category.modifiers_changed_at,
    }


def _get_category_or_404(db: Session, category_code: str) -> MenuCategory:
    try:
        return get_category_or_raise(db, category_code)
    except ModifierAssignmentError as exc:
        raise to_http_exception(exc) from exc


@router.get("", response_model=List[MenuCategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    categories = (
        db.query(MenuCategory)
        .order_by(MenuCategory.display_order.is_(None), MenuCategory.display_order.asc(), MenuCategory.name.asc())
        .all()
    )
    return [_category_to_dict(category) for category in categories]


@router.post("", response_model=MenuCategoryOut, status_code=201)
def create_category(
    payload: MenuCategoryCreate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
    store_code: Optional[str] = Depends(get_store_code),
):
    category = MenuCategory(
        menu_category_code=generate_unique_code(db, MenuCategory.menu_category_code),
        name=payload.name,
        color_code=payload.color_code,
        display_order=payload.display_order,
        is_active=payload.is_active,
        store_code=store_code,
    )
    db.add(category)
    db.flush()
    log_admin_action(
        db,
        user_id=user.id,
        action="create_menu_category",
        entity_type="menu_category",
        entity_code=category.menu_category_code,
    )
    db.commit()
    db.refresh(category)
    return _category_to_dict(category)


@router.put("/{category_code}", response_model=MenuCategoryOut)
def update_category(
    category_code: str,
    payload: MenuCategoryUpdate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
):
    category = _get_category_or_404(db, category_code)

    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(category, key, value)

    log_admin_action(
        db,
        user_id=user.id,
        action="update_menu_category",
        entity_type="menu_category",
        entity_code=category_code,
    )
    db.commit()
    db.refresh(category)
    return _category_to_dict(category)


@router.delete("/{category_code}")
def delete_category(
    category_code: str,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(DELETE_ROLES)),
):
    category = _get_category_or_404(db, category_code)

    in_use = db.query(MenuItem.id).filter(MenuItem.menu_category_code == category_code).first()
    if in_use:
        raise HTTPException(
            status_code=400,
            detail="Categoria possui itens vinculados. Remova ou mova os itens antes de excluir.",
        )

    db.query(CategoryModifierLink).filter(
        CategoryModifierLink.menu_category_code == category_code,
    ).delete(synchronize_session=False)
    db.delete(category)
    log_admin_action(
        db,
        user_id=user.id,
        action="delete_menu_category",
        entity_type="menu_category",
        entity_code=category_code,
    )
    db.commit()
    return {"message": "Categoria excluída"}


@router.get("/{category_code}/modifier-groups", response_model=List[CategoryModifierLinkOut])
def list_category_modifier_groups(
    category_code: str,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    _get_category_or_404(db, category_code)
    rows = (
        db.query(CategoryModifierLink, ModifierGroup.group_name)
        .outerjoin(
            ModifierGroup,
            ModifierGroup.modifier_group_code == CategoryModifierLink.modifier_group_code,
        )
        .filter(CategoryModifierLink.menu_category_code == category_code)
        .order_by(CategoryModifierLink.id.asc())
        .all()
    )
    return [
        {
            "menu_category_code": link.menu_category_code,
            "modifier_group_code": link.modifier_group_code,
            "group_name": group_name,
        }
        for link, group_name in rows
    ]


@router.post("/{category_code}/modifier-groups", response_model=CategoryModifierLinkOut, status_code=201)
def add_category_modifier_group(
    category_code: str,
    payload: CategoryModifierLinkCreate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
    store_code: Optional[str] = Depends(get_store_code),
):
    try:
        link = link_group_to_category(
            db,
            menu_category_code=category_code,
            modifier_group_code=payload.modifier_group_code,
            store_code=store_code,
        )
    except ModifierAssignmentError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc

    log_admin_action(
        db,
        user_id=user.id,
        action="link_category_modifier_group",
        entity_type="menu_category",
        entity_code=category_code,
        meta={"modifier_group_code": payload.modifier_group_code},
    )
    db.commit()
    group_name = (
        db.query(ModifierGroup.group_name)
        .filter(ModifierGroup.modifier_group_code == link.modifier_group_code)
        .scalar()
    )
    return {
        "menu_category_code": category_code,
        "modifier_group_code": payload.modifier_group_code,
        "group_name": group_name,
    }


@router.delete("/{category_code}/modifier-groups/{group_code}")
def remove_category_modifier_group(
    category_code: str,
    group_code: str,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
):
    try:
        unlink_group_from_category(db, menu_category_code=category_code, modifier_group_code=group_code)
    except ModifierAssignmentError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc

    log_admin_action(
        db,
        user_id=user.id,
        action="unlink_category_modifier_group",
        entity_type="menu_category",
        entity_code=category_code,
        meta={"modifier_group_code": group_code},
    )
    db.commit()
    # Itens já salvos mantêm o snapshot; use /reapply para propagar.
    stale_items = (
        db.query(ItemModifierAssignment.menu_item_code)
        .join(MenuItem, MenuItem.menu_item_code == ItemModifierAssignment.menu_item_code)
        .filter(
            MenuItem.menu_category_code == category_code,
            ItemModifierAssignment.modifier_group_code == group_code,
            ItemModifierAssignment.inherit_from_menu_group.is_(True),
        )
        .count()
    )
    return {"message": "Vínculo removido", "stale_items": stale_items}


@router.post("/{category_code}/modifier-groups/reapply")
def reapply_category_modifier_groups(
    category_code: str,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
    store_code: Optional[str] = Depends(get_store_code),
):
    _get_category_or_404(db, category_code)
    try:
        item_codes = reapply_category(db, category_code, store_code=store_code)
    except ModifierAssignmentError as exc:
        raise to_http_exception(exc) from exc

    log_admin_action(
        db,
        user_id=user.id,
        action="reapply_category_modifier_groups",
        entity_type="menu_category",
        entity_code=category_code,
        meta={"items": item_codes},
    )
    db.commit()
    return {"success": True, "menu_item_codes": item_codes}
