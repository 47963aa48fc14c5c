from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.deps import DELETE_ROLES, WRITE_ROLES, get_store_code, require_admin_user, require_role
from backoffice.models.admin_user import AdminUser
from backoffice.models.category_modifier_link import CategoryModifierLink
from backoffice.models.item_modifier_assignment import ItemModifierAssignment
from backoffice.models.modifier_group import ModifierGroup
from backoffice.models.modifier_item import ModifierItem
from backoffice.schemas.menu import (
    AvailableModifierOut,
    ModifierGroupCreate,
    ModifierGroupOut,
    ModifierGroupUpdate,
)
from backoffice.services.admin_audit import log_admin_action
from backoffice.services.category_modifiers import categories_by_group
from backoffice.services.code_generator import generate_unique_code

router = APIRouter(prefix="/api/modifier-groups", tags=["modifier-groups"])


def _modifier_item_to_dict(item: ModifierItem) -> dict:
    return {
        "modifier_item_code": item.modifier_item_code,
        "modifier_group_code": item.modifier_group_code,
        "name": item.name,
        "label_name": item.label_name,
        "price": item.price,
        "is_default": item.is_default,
        "display_order": item.display_order,
        "is_active": item.is_active,
        "color_code": item.color_code,
    }


def _group_to_dict(
    group: ModifierGroup,
    *,
    assigned_categories: Optional[list[dict]] = None,
    items: Optional[list[ModifierItem]] = None,
) -> dict:
    return {
        "modifier_group_code": group.modifier_group_code,
        "group_name": group.group_name,
        "label_name": group.label_name,
        "is_required": group.is_required,
        "is_multiselect": group.is_multiselect,
        "min_selection": group.min_selection,
        "max_selection": group.max_selection,
        "show_default_top": group.show_default_top,
        "price_strategy": group.price_strategy,
        "price": group.price,
        "menu_category_code": group.menu_category_code,
        "is_active": group.is_active,
        "assigned_categories": assigned_categories or [],
        "items": [_modifier_item_to_dict(item) for item in items or []],
    }


def _get_group_or_404(db: Session, group_code: str) -> ModifierGroup:
    group = db.query(ModifierGroup).filter(ModifierGroup.modifier_group_code == group_code).first()
    if not group:
        raise HTTPException(status_code=404, detail=f"Grupo de modificadores não encontrado: {group_code}")
    return group


def _config_summary(group: ModifierGroup) -> str:
    summary = "Required" if group.is_required else "Optional"
    summary += ", multi select" if group.is_multiselect else ", single select"
    return summary


@router.get("", response_model=List[ModifierGroupOut])
def list_groups(
    menu_category_code: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    query = db.query(ModifierGroup)
    if menu_category_code:
        linked_codes = (
            db.query(CategoryModifierLink.modifier_group_code)
            .filter(CategoryModifierLink.menu_category_code == menu_category_code)
            .all()
        )
        group_codes = [code for (code,) in linked_codes]
        if not group_codes:
            return []
        query = query.filter(ModifierGroup.modifier_group_code.in_(group_codes))

    groups = query.order_by(ModifierGroup.created_at.desc(), ModifierGroup.id.desc()).all()
    assigned = categories_by_group(db, [group.modifier_group_code for group in groups])
    return [
        _group_to_dict(group, assigned_categories=assigned.get(group.modifier_group_code))
        for group in groups
    ]


@router.get("/available", response_model=List[AvailableModifierOut])
def list_available_modifiers(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    query = db.query(ModifierGroup)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            ModifierGroup.group_name.ilike(pattern) | ModifierGroup.label_name.ilike(pattern)
        )
    groups = query.order_by(ModifierGroup.group_name.asc()).all()
    if not groups:
        return []

    items = (
        db.query(ModifierItem)
        .filter(
            ModifierItem.modifier_group_code.in_([group.modifier_group_code for group in groups]),
            ModifierItem.is_active.is_(True),
        )
        .order_by(ModifierItem.display_order.is_(None), ModifierItem.display_order.asc(), ModifierItem.id.asc())
        .all()
    )
    items_by_group: dict[str, list[ModifierItem]] = {}
    for item in items:
        items_by_group.setdefault(item.modifier_group_code, []).append(item)

    payload = []
    for group in groups:
        group_items = items_by_group.get(group.modifier_group_code, [])
        payload.append(
            {
                "modifier_group_code": group.modifier_group_code,
                "name": group.group_name,
                "label_name": group.label_name,
                "pos_name": group.label_name or group.group_name,
                "is_required": group.is_required,
                "is_multiselect": group.is_multiselect,
                "min_selection": group.min_selection,
                "max_selection": group.max_selection,
                "item_count": len(group_items),
                "sample_items": [item.name for item in group_items[:3]],
                "config_summary": _config_summary(group),
                "modifier_items": [_modifier_item_to_dict(item) for item in group_items],
            }
        )
    return payload


@router.get("/{group_code}", response_model=ModifierGroupOut)
def get_group(
    group_code: str,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    group = _get_group_or_404(db, group_code)
    items = (
        db.query(ModifierItem)
        .filter(ModifierItem.modifier_group_code == group_code)
        .order_by(ModifierItem.display_order.is_(None), ModifierItem.display_order.asc(), ModifierItem.id.asc())
        .all()
    )
    assigned = categories_by_group(db, [group_code])
    return _group_to_dict(group, assigned_categories=assigned.get(group_code), items=items)


@router.post("", response_model=ModifierGroupOut, status_code=201)
def create_group(
    payload: ModifierGroupCreate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
    store_code: Optional[str] = Depends(get_store_code),
):
    group = ModifierGroup(
        modifier_group_code=generate_unique_code(db, ModifierGroup.modifier_group_code),
        store_code=store_code,
        **payload.model_dump(),
    )
    db.add(group)
    db.flush()
    log_admin_action(
        db,
        user_id=user.id,
        action="create_modifier_group",
        entity_type="modifier_group",
        entity_code=group.modifier_group_code,
    )
    db.commit()
    db.refresh(group)
    return _group_to_dict(group)


@router.put("/{group_code}", response_model=ModifierGroupOut)
def update_group(
    group_code: str,
    payload: ModifierGroupUpdate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
):
    group = _get_group_or_404(db, group_code)
    changes = payload.model_dump(exclude_unset=True)

    min_selection = changes.get("min_selection", group.min_selection)
    max_selection = changes.get("max_selection", group.max_selection)
    if min_selection is not None and max_selection is not None and min_selection > max_selection:
        raise HTTPException(status_code=400, detail="min_selection não pode ser maior que max_selection")

    for key, value in changes.items():
        setattr(group, key, value)

    log_admin_action(
        db,
        user_id=user.id,
        action="update_modifier_group",
        entity_type="modifier_group",
        entity_code=group_code,
        meta={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(group)
    return _group_to_dict(group)


@router.delete("/{group_code}")
def delete_group(
    group_code: str,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(DELETE_ROLES)),
):
    group = _get_group_or_404(db, group_code)

    # Remove tudo que referencia o grupo para não deixar vínculos órfãos.
    db.query(ModifierItem).filter(ModifierItem.modifier_group_code == group_code).delete(
        synchronize_session=False
    )
    db.query(CategoryModifierLink).filter(CategoryModifierLink.modifier_group_code == group_code).delete(
        synchronize_session=False
    )
    db.query(ItemModifierAssignment).filter(ItemModifierAssignment.modifier_group_code == group_code).delete(
        synchronize_session=False
    )
    db.delete(group)
    log_admin_action(
        db,
        user_id=user.id,
        action="delete_modifier_group",
        entity_type="modifier_group",
        entity_code=group_code,
    )
    db.commit()
    return {"message": "Grupo de modificadores excluído"}
