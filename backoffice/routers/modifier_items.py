from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.deps import DELETE_ROLES, WRITE_ROLES, get_store_code, require_admin_user, require_role
from backoffice.models.admin_user import AdminUser
from backoffice.models.modifier_group import ModifierGroup
from backoffice.models.modifier_item import ModifierItem
from backoffice.schemas.menu import ModifierItemCreate, ModifierItemOut, ModifierItemUpdate
from backoffice.services.admin_audit import log_admin_action
from backoffice.services.code_generator import generate_unique_code

router = APIRouter(prefix="/api/modifier-groups/{group_code}/items", tags=["modifier-items"])


def _item_to_dict(item: ModifierItem) -> dict:
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


def _ensure_group_exists(db: Session, group_code: str) -> None:
    exists = db.query(ModifierGroup.id).filter(ModifierGroup.modifier_group_code == group_code).first()
    if not exists:
        raise HTTPException(status_code=404, detail=f"Grupo de modificadores não encontrado: {group_code}")


def _get_item_or_404(db: Session, group_code: str, item_code: str) -> ModifierItem:
    item = (
        db.query(ModifierItem)
        .filter(
            ModifierItem.modifier_group_code == group_code,
            ModifierItem.modifier_item_code == item_code,
        )
        .first()
    )
    if not item:
        raise HTTPException(status_code=404, detail=f"Opção não encontrada: {item_code}")
    return item


@router.get("", response_model=List[ModifierItemOut])
def list_modifier_items(
    group_code: str,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_admin_user),
):
    _ensure_group_exists(db, group_code)
    items = (
        db.query(ModifierItem)
        .filter(ModifierItem.modifier_group_code == group_code)
        .order_by(ModifierItem.display_order.is_(None), ModifierItem.display_order.asc(), ModifierItem.id.asc())
        .all()
    )
    return [_item_to_dict(item) for item in items]


@router.post("", response_model=ModifierItemOut, status_code=201)
def create_modifier_item(
    group_code: str,
    payload: ModifierItemCreate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
    store_code: Optional[str] = Depends(get_store_code),
):
    _ensure_group_exists(db, group_code)
    item = ModifierItem(
        modifier_item_code=generate_unique_code(db, ModifierItem.modifier_item_code),
        modifier_group_code=group_code,
        store_code=store_code,
        **payload.model_dump(),
    )
    db.add(item)
    db.flush()
    log_admin_action(
        db,
        user_id=user.id,
        action="create_modifier_item",
        entity_type="modifier_item",
        entity_code=item.modifier_item_code,
        meta={"modifier_group_code": group_code},
    )
    db.commit()
    db.refresh(item)
    return _item_to_dict(item)


@router.put("/{item_code}", response_model=ModifierItemOut)
def update_modifier_item(
    group_code: str,
    item_code: str,
    payload: ModifierItemUpdate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(WRITE_ROLES)),
):
    item = _get_item_or_404(db, group_code, item_code)
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(item, key, value)

    log_admin_action(
        db,
        user_id=user.id,
        action="update_modifier_item",
        entity_type="modifier_item",
        entity_code=item_code,
        meta={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(item)
    return _item_to_dict(item)


@router.delete("/{item_code}")
def delete_modifier_item(
    group_code: str,
    item_code: str,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(DELETE_ROLES)),
):
    item = _get_item_or_404(db, group_code, item_code)
    db.delete(item)
    log_admin_action(
        db,
        user_id=user.id,
        action="delete_modifier_item",
        entity_type="modifier_item",
        entity_code=item_code,
    )
    db.commit()
    return {"message": "Opção excluída"}
