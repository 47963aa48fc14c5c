from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.models.item_modifier_assignment import ItemModifierAssignment
from backoffice.models.menu_category import MenuCategory
from backoffice.models.menu_item import MenuItem
from backoffice.models.modifier_group import ModifierGroup
from backoffice.models.modifier_item import ModifierItem
from backoffice.schemas.modifier_assignments import (
    AssignmentStatus,
    AssignmentWriteRequest,
    ModifierGroupOverride,
    ModifierGroupView,
    ModifierItemView,
    ProjectedAssignment,
)
from backoffice.services.category_modifiers import category_group_codes
from backoffice.services.errors import AssignmentValidationError, NotFoundError, TransactionFailure
from backoffice.services.modifier_inheritance import ResolvedAssignment, resolve_assignments

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _get_item_or_raise(db: Session, item_code: str) -> MenuItem:
    item = db.query(MenuItem).filter(MenuItem.menu_item_code == item_code).first()
    if not item:
        raise NotFoundError("Item do cardápio", item_code)
    return item


def _validate_request(db: Session, explicit: list[str], overrides: dict[str, ModifierGroupOverride]) -> None:
    orphan_overrides = [code for code in overrides if code not in explicit]
    if orphan_overrides:
        raise AssignmentValidationError(
            f"Overrides para grupos não selecionados explicitamente: {orphan_overrides}"
        )
    if not explicit:
        return
    groups = {
        group.modifier_group_code: group
        for group in db.query(ModifierGroup).filter(ModifierGroup.modifier_group_code.in_(explicit)).all()
    }
    missing = [code for code in explicit if code not in groups]
    if missing:
        raise AssignmentValidationError(f"Grupos de modificadores inexistentes: {missing}")

    # O override é combinado com o padrão do grupo antes de comparar os limites.
    for code, override in overrides.items():
        policy = _effective_policy(override, groups[code])
        min_selection, max_selection = policy["min_selection"], policy["max_selection"]
        if min_selection is not None and max_selection is not None and min_selection > max_selection:
            raise AssignmentValidationError(
                f"Limites inválidos para o grupo {code}: min_selection={min_selection} "
                f"maior que max_selection={max_selection}"
            )


def _insert_assignments(
    db: Session,
    *,
    item_code: str,
    resolved: list[ResolvedAssignment],
    overrides: dict[str, ModifierGroupOverride],
    store_code: Optional[str],
) -> None:
    for position, entry in enumerate(resolved):
        override = None if entry.inherited else overrides.get(entry.group_code)
        db.add(
            ItemModifierAssignment(
                menu_item_code=item_code,
                modifier_group_code=entry.group_code,
                inherit_from_menu_group=entry.inherited,
                is_inherit_from_menu_category=entry.inherited,
                is_required=override.is_required if override else None,
                is_multiselect=override.is_multiselect if override else None,
                min_selection=override.min_selection if override else None,
                max_selection=override.max_selection if override else None,
                position=position,
                store_code=store_code,
            )
        )
    db.flush()


def save_item_assignments(
    db: Session,
    item_code: str,
    request: AssignmentWriteRequest,
    *,
    store_code: Optional[str] = None,
) -> list[ResolvedAssignment]:
    """Substitui o conjunto de grupos do item pelo resultado da resolução.

    Tudo roda numa única transação: flag de herança, leitura dos grupos da
    categoria, delete e insert. Em qualquer falha do banco a transação é
    desfeita e o conjunto anterior permanece intacto.
    """
    item = _get_item_or_raise(db, item_code)
    explicit = list(dict.fromkeys(request.explicit_group_codes))
    overrides = request.overrides_by_code()
    _validate_request(db, explicit, overrides)

    try:
        item.inherit_modifier_group = request.inherit_enabled
        inheritable = category_group_codes(db, item.menu_category_code)
        resolved = resolve_assignments(explicit, inheritable, request.inherit_enabled)

        db.query(ItemModifierAssignment).filter(
            ItemModifierAssignment.menu_item_code == item_code,
        ).delete(synchronize_session=False)
        _insert_assignments(
            db,
            item_code=item_code,
            resolved=resolved,
            overrides=overrides,
            store_code=store_code,
        )
        item.modifiers_resolved_at = _utcnow()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("modifier assignment save rolled back", extra={"item_code": item_code})
        raise TransactionFailure(f"Falha ao gravar modificadores do item {item_code}") from exc

    logger.info(
        "modifier assignments saved explicit=%s inherited=%s inherit_enabled=%s",
        sum(1 for entry in resolved if not entry.inherited),
        sum(1 for entry in resolved if entry.inherited),
        request.inherit_enabled,
        extra={"item_code": item_code},
    )
    return resolved


def current_write_request(db: Session, item: MenuItem) -> AssignmentWriteRequest:
    """Reconstrói o pedido de gravação a partir das linhas explícitas salvas."""
    rows = (
        db.query(ItemModifierAssignment)
        .filter(
            ItemModifierAssignment.menu_item_code == item.menu_item_code,
            ItemModifierAssignment.inherit_from_menu_group.is_(False),
        )
        .order_by(ItemModifierAssignment.position.asc(), ItemModifierAssignment.id.asc())
        .all()
    )
    overrides = [
        ModifierGroupOverride(
            code=row.modifier_group_code,
            is_required=row.is_required,
            is_multiselect=row.is_multiselect,
            min_selection=row.min_selection,
            max_selection=row.max_selection,
        )
        for row in rows
        if any(
            value is not None
            for value in (row.is_required, row.is_multiselect, row.min_selection, row.max_selection)
        )
    ]
    return AssignmentWriteRequest(
        explicit_group_codes=[row.modifier_group_code for row in rows],
        per_group_overrides=overrides,
        inherit_enabled=bool(item.inherit_modifier_group),
    )


def reapply_category(
    db: Session,
    menu_category_code: str,
    *,
    store_code: Optional[str] = None,
) -> list[str]:
    """Reexecuta a resolução para todos os itens da categoria (uma transação por item)."""
    item_codes = [
        code
        for (code,) in db.query(MenuItem.menu_item_code)
        .filter(MenuItem.menu_category_code == menu_category_code)
        .order_by(MenuItem.id.asc())
        .all()
    ]
    for item_code in item_codes:
        item = _get_item_or_raise(db, item_code)
        save_item_assignments(db, item_code, current_write_request(db, item), store_code=store_code)
    logger.info(
        "category modifiers reapplied items=%s",
        len(item_codes),
        extra={"category_code": menu_category_code},
    )
    return item_codes


def _option_view(option: ModifierItem) -> ModifierItemView:
    return ModifierItemView(
        code=option.modifier_item_code,
        name=option.name,
        label_name=option.label_name,
        price=Decimal(option.price or 0),
        is_default=bool(option.is_default),
        display_order=option.display_order,
        active=bool(option.is_active),
    )


def _effective_policy(override, group: ModifierGroup) -> dict:
    """Política de seleção do grupo para o item.

    `override` é uma linha de ItemModifierAssignment ou um ModifierGroupOverride
    (mesmos atributos); campos None caem no padrão do grupo.
    """

    def pick(name):
        value = getattr(override, name, None)
        return getattr(group, name) if value is None else value

    is_multiselect = bool(pick("is_multiselect"))
    max_selection = pick("max_selection")
    if not is_multiselect:
        max_selection = 1
    return {
        "is_required": bool(pick("is_required")),
        "is_multiselect": is_multiselect,
        "min_selection": pick("min_selection"),
        "max_selection": max_selection,
    }


def project_for_item(db: Session, item_code: Optional[str]) -> list[ProjectedAssignment]:
    if not item_code:
        return []

    rows = (
        db.query(ItemModifierAssignment, ModifierGroup)
        .join(
            ModifierGroup,
            ModifierGroup.modifier_group_code == ItemModifierAssignment.modifier_group_code,
        )
        .filter(ItemModifierAssignment.menu_item_code == item_code)
        .order_by(ItemModifierAssignment.position.asc(), ItemModifierAssignment.id.asc())
        .all()
    )
    if not rows:
        return []

    group_codes = [group.modifier_group_code for _, group in rows]
    options = (
        db.query(ModifierItem)
        .filter(
            ModifierItem.modifier_group_code.in_(group_codes),
            ModifierItem.is_active.is_(True),
        )
        .order_by(
            ModifierItem.display_order.is_(None),
            ModifierItem.display_order.asc(),
            ModifierItem.id.asc(),
        )
        .all()
    )
    options_by_group: dict[str, list[ModifierItem]] = {}
    for option in options:
        options_by_group.setdefault(option.modifier_group_code, []).append(option)

    return [
        ProjectedAssignment(
            group_code=group.modifier_group_code,
            inherited=bool(assignment.inherit_from_menu_group),
            group=ModifierGroupView(
                code=group.modifier_group_code,
                name=group.group_name,
                label_name=group.label_name,
                options=[_option_view(option) for option in options_by_group.get(group.modifier_group_code, [])],
            ),
            **_effective_policy(assignment, group),
        )
        for assignment, group in rows
    ]


def assignment_status(db: Session, item_code: str) -> AssignmentStatus:
    item = _get_item_or_raise(db, item_code)
    category_changed_at = None
    if item.menu_category_code:
        category_changed_at = (
            db.query(MenuCategory.modifiers_changed_at)
            .filter(MenuCategory.menu_category_code == item.menu_category_code)
            .scalar()
        )

    resolved_at = item.modifiers_resolved_at
    if resolved_at is None:
        # Nunca resolvido, ou a categoria do item mudou depois da última resolução.
        has_rows = (
            db.query(ItemModifierAssignment.id)
            .filter(ItemModifierAssignment.menu_item_code == item.menu_item_code)
            .first()
            is not None
        )
        inheritable = bool(item.inherit_modifier_group) and bool(category_group_codes(db, item.menu_category_code))
        stale = has_rows or inheritable
    else:
        stale = category_changed_at is not None and (
            _as_naive_utc(category_changed_at) > _as_naive_utc(resolved_at)
        )

    return AssignmentStatus(
        menu_item_code=item.menu_item_code,
        resolved_at=resolved_at,
        category_changed_at=category_changed_at,
        stale=stale,
    )
