from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.deps import DELETE_ROLES, WRITE_ROLES, get_store_code, require_admin_user, require_role
from backoffice.models.admin_user import AdminUser
from backoffice.models.item_modifier_assignment import ItemModifierAssignment
from backoffice.models.menu_category import MenuCategory
from backoffice.models.menu_item import MenuItem
from backoffice.schemas.menu import MenuItemCreate, MenuItemOut, MenuItemUpdate
from backoffice.schemas.modifier_assignments import (
    AssignmentStatus,
    AssignmentWriteRequest,
    AssignmentWriteResponse,
    ProjectedAssignment,
)
from backoffice.services.admin_audit import log_admin_action
from backoffice.services.code_generator import generate_unique_code
from backoffice.services.errors import ModifierAssignmentError, to_http_exception
from backoffice.services.modifier_assignments import (
    assignment_status,
    project_for_item,
    save_item_assignments,
)

router = APIRouter(prefix="/api/menu/items", tags=["menu-items"])


def _item_to_dict(item: MenuItem) -> dict:
    return {
        "menu_item_code": item.menu_item_code,
        "name": item.name,
        "kitchen_name": item.kitchen_name,
        "description": item.description,
        "menu_category_code": item.menu_category_code,
        "base_price": item.base_price,
        "is_active": item.is_active,
        "inherit_modifier_group": item.inherit_modifier_group,
        "modifiers_resolved_at": item.modifiers_resolved_at,
    }


def _get_item_or_404(db: Session, item_code: str) -> MenuItem:
    item = db.query(MenuItem).filter(MenuItem.menu_item_code == item_code).first()
    if not item:
        raise HTTPException(status_code=404, detail=f"Item do cardápio não encontrado: {item_code}")
    return item


def _ensure_category_exists(db: Session, category_code: Optional[str]) -> None:
    if not category_code:
        return
    exists = db.query(MenuCategory.id).filter(MenuCategory.menu_category_code == category_code).first()
    if not exists:
        raise HTTPException(status_code=404, detail=f"Categoria não encontrada: {category_code}")


@router.get("", response_model=List[MenuItemOut])
def list_items(
    menu_category_code: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    query = db.query(MenuItem)
    if menu_category_code:
        query = query.filter(MenuItem.menu_category_code == menu_category_code)
    items = query.order_by(MenuItem.name.asc()).all()
    return [_item_to_dict(item) for item in items]


@router.get("/{item_code}", response_model=MenuItemOut)
def get_item(
    item_code: str,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    return _item_to_dict(_get_item_or_404(db, item_code))


@router.post("", response_model=MenuItemOut, status_code=201)
def create_item(
    payload: MenuItemCreate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
    store_code: Optional[str] = Depends(get_store_code),
):
    _ensure_category_exists(db, payload.menu_category_code)
    try:
        assignment_request = AssignmentWriteRequest(
            explicit_group_codes=payload.selected_modifiers,
            per_group_overrides=payload.modifier_overrides,
            inherit_enabled=payload.inherit_modifiers,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=[{"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()],
        ) from exc

    item = MenuItem(
        menu_item_code=generate_unique_code(db, MenuItem.menu_item_code),
        name=payload.name,
        kitchen_name=payload.kitchen_name,
        description=payload.description,
        menu_category_code=payload.menu_category_code,
        base_price=payload.base_price,
        is_active=payload.is_active,
        inherit_modifier_group=payload.inherit_modifiers,
        store_code=store_code,
    )
    db.add(item)
    db.flush()
    log_admin_action(
        db,
        user_id=user.id,
        action="create_menu_item",
        entity_type="menu_item",
        entity_code=item.menu_item_code,
    )

    # Item e modificadores são gravados no mesmo commit.
    try:
        save_item_assignments(db, item.menu_item_code, assignment_request, store_code=store_code)
    except ModifierAssignmentError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc

    db.refresh(item)
    return _item_to_dict(item)


@router.put("/{item_code}", response_model=MenuItemOut)
def update_item(
    item_code: str,
    payload: MenuItemUpdate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
):
    item = _get_item_or_404(db, item_code)
    changes = payload.model_dump(exclude_unset=True)
    category_moved = (
        "menu_category_code" in changes and changes["menu_category_code"] != item.menu_category_code
    )
    if category_moved:
        _ensure_category_exists(db, changes["menu_category_code"])

    for key, value in changes.items():
        setattr(item, key, value)
    if category_moved:
        # Linhas herdadas ainda vêm da categoria anterior; o status passa a acusar pendência.
        item.modifiers_resolved_at = None

    log_admin_action(
        db,
        user_id=user.id,
        action="update_menu_item",
        entity_type="menu_item",
        entity_code=item_code,
        meta={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(item)
    return _item_to_dict(item)


@router.delete("/{item_code}")
def delete_item(
    item_code: str,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(DELETE_ROLES)),
):
    item = _get_item_or_404(db, item_code)
    db.query(ItemModifierAssignment).filter(
        ItemModifierAssignment.menu_item_code == item_code,
    ).delete(synchronize_session=False)
    db.delete(item)
    log_admin_action(
        db,
        user_id=user.id,
        action="delete_menu_item",
        entity_type="menu_item",
        entity_code=item_code,
    )
    db.commit()
    return {"message": "Item do cardápio excluído"}


@router.get("/{item_code}/modifiers", response_model=List[ProjectedAssignment])
def list_item_modifiers(
    item_code: str,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    return project_for_item(db, item_code)


@router.post("/{item_code}/modifiers", response_model=AssignmentWriteResponse)
def save_item_modifiers(
    item_code: str,
    payload: AssignmentWriteRequest,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
    store_code: Optional[str] = Depends(get_store_code),
):
    log_admin_action(
        db,
        user_id=user.id,
        action="save_menu_item_modifiers",
        entity_type="menu_item",
        entity_code=item_code,
        meta={
            "explicit_group_codes": payload.explicit_group_codes,
            "inherit_enabled": payload.inherit_enabled,
        },
    )
    try:
        save_item_assignments(db, item_code, payload, store_code=store_code)
    except ModifierAssignmentError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    return {"success": True}


@router.get("/{item_code}/modifiers/status", response_model=AssignmentStatus)
def item_modifiers_status(
    item_code: str,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    try:
        return assignment_status(db, item_code)
    except ModifierAssignmentError as exc:
        raise to_http_exception(exc) from exc
