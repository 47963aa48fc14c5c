import pytest
from sqlalchemy.exc import OperationalError

from backoffice.models.category_modifier_link import CategoryModifierLink
from backoffice.models.item_modifier_assignment import ItemModifierAssignment
from backoffice.models.menu_item import MenuItem
from backoffice.models.modifier_item import ModifierItem
from backoffice.schemas.modifier_assignments import AssignmentWriteRequest, ModifierGroupOverride
from backoffice.services import modifier_assignments
from backoffice.services.category_modifiers import link_group_to_category
from backoffice.services.errors import AssignmentValidationError, NotFoundError, TransactionFailure
from backoffice.services.modifier_assignments import (
    assignment_status,
    project_for_item,
    reapply_category,
    save_item_assignments,
)
from tests.fixtures_data import (
    BREAD,
    BURGERS,
    CLASSIC_BURGER,
    SAUCES,
    SIDE,
    SODA,
    TOPPINGS,
    build_session,
    seed_menu,
)


@pytest.fixture
def db():
    session = build_session()
    seed_menu(session)
    yield session
    session.close()


def _stored(db, item_code):
    rows = (
        db.query(ItemModifierAssignment)
        .filter(ItemModifierAssignment.menu_item_code == item_code)
        .order_by(ItemModifierAssignment.position.asc())
        .all()
    )
    return [(row.modifier_group_code, row.inherit_from_menu_group) for row in rows]


def _request(explicit, inherit=True, overrides=None):
    return AssignmentWriteRequest(
        explicit_group_codes=explicit,
        per_group_overrides=overrides or [],
        inherit_enabled=inherit,
    )


def test_save_persists_explicit_then_inherited_groups(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))

    assert _stored(db, CLASSIC_BURGER) == [(TOPPINGS, False), (BREAD, True), (SIDE, True)]
    item = db.query(MenuItem).filter(MenuItem.menu_item_code == CLASSIC_BURGER).one()
    assert item.inherit_modifier_group is True
    assert item.modifiers_resolved_at is not None


def test_save_twice_with_same_input_is_idempotent(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([BREAD, TOPPINGS]))
    first = _stored(db, CLASSIC_BURGER)

    save_item_assignments(db, CLASSIC_BURGER, _request([BREAD, TOPPINGS]))

    assert _stored(db, CLASSIC_BURGER) == first
    assert db.query(ItemModifierAssignment).count() == 3


def test_explicit_selection_wins_over_category_link(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([SIDE]))

    assert _stored(db, CLASSIC_BURGER) == [(SIDE, False), (BREAD, True)]


def test_turning_inheritance_off_removes_inherited_rows(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))

    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], inherit=False))

    assert _stored(db, CLASSIC_BURGER) == [(TOPPINGS, False)]
    item = db.query(MenuItem).filter(MenuItem.menu_item_code == CLASSIC_BURGER).one()
    assert item.inherit_modifier_group is False


def test_save_does_not_touch_other_items(db):
    save_item_assignments(db, SODA, _request([SAUCES]))

    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], inherit=False))

    assert _stored(db, SODA) == [(SAUCES, False)]


def test_unknown_item_raises_not_found(db):
    with pytest.raises(NotFoundError):
        save_item_assignments(db, "W999", _request([TOPPINGS]))


def test_unknown_group_is_rejected_before_any_write(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))

    with pytest.raises(AssignmentValidationError):
        save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS, "W999"]))

    assert _stored(db, CLASSIC_BURGER) == [(TOPPINGS, False), (BREAD, True), (SIDE, True)]


def test_override_for_group_not_selected_is_rejected(db):
    overrides = [ModifierGroupOverride(code=BREAD, is_required=False)]

    with pytest.raises(AssignmentValidationError):
        save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], overrides=overrides))


def test_failure_after_delete_keeps_previous_assignments(db, monkeypatch):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))
    before = _stored(db, CLASSIC_BURGER)

    def _fail_insert(*args, **kwargs):
        raise OperationalError("INSERT INTO menu_item_modifiers", {}, Exception("connection lost"))

    monkeypatch.setattr(modifier_assignments, "_insert_assignments", _fail_insert)

    with pytest.raises(TransactionFailure):
        save_item_assignments(db, CLASSIC_BURGER, _request([SAUCES], inherit=False))

    assert _stored(db, CLASSIC_BURGER) == before
    item = db.query(MenuItem).filter(MenuItem.menu_item_code == CLASSIC_BURGER).one()
    assert item.inherit_modifier_group is True


def test_category_lookup_failure_fails_the_write(db, monkeypatch):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))
    before = _stored(db, CLASSIC_BURGER)

    def _fail_lookup(*args, **kwargs):
        raise OperationalError("SELECT menu_category_modifiers", {}, Exception("timeout"))

    monkeypatch.setattr(modifier_assignments, "category_group_codes", _fail_lookup)

    with pytest.raises(TransactionFailure):
        save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))

    assert _stored(db, CLASSIC_BURGER) == before


def test_projection_filters_inactive_options_and_sorts_nulls_last(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], inherit=False))

    projected = project_for_item(db, CLASSIC_BURGER)

    assert len(projected) == 1
    toppings = projected[0]
    assert toppings.group_code == TOPPINGS
    assert toppings.inherited is False
    assert [option.name for option in toppings.group.options] == ["Queijo", "Bacon", "Cebola crispy"]
    assert all(option.active for option in toppings.group.options)


def test_projection_applies_overrides_over_group_defaults(db):
    overrides = [ModifierGroupOverride(code=TOPPINGS, is_required=True, min_selection=1, max_selection=2)]
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], overrides=overrides))

    projected = {entry.group_code: entry for entry in project_for_item(db, CLASSIC_BURGER)}

    assert projected[TOPPINGS].is_required is True
    assert projected[TOPPINGS].min_selection == 1
    assert projected[TOPPINGS].max_selection == 2
    assert projected[BREAD].is_required is True
    assert projected[BREAD].max_selection == 1
    assert projected[SIDE].is_required is False


def test_projection_for_unknown_or_empty_item_is_empty(db):
    assert project_for_item(db, "W999") == []
    assert project_for_item(db, "") == []
    assert project_for_item(db, None) == []


def test_projection_keeps_snapshot_after_category_reassignment(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))
    item = db.query(MenuItem).filter(MenuItem.menu_item_code == CLASSIC_BURGER).one()
    item.menu_category_code = None
    db.commit()

    projected = project_for_item(db, CLASSIC_BURGER)

    assert [(entry.group_code, entry.inherited) for entry in projected] == [
        (TOPPINGS, False),
        (BREAD, True),
        (SIDE, True),
    ]


def test_projection_ignores_deactivated_option_added_later(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([], inherit=True))
    db.query(ModifierItem).filter(ModifierItem.modifier_item_code == "W001").update({"is_active": False})
    db.commit()

    projected = {entry.group_code: entry for entry in project_for_item(db, CLASSIC_BURGER)}

    assert [option.name for option in projected[BREAD].group.options] == ["Australiano"]


def test_status_is_stale_after_category_link_changes(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS]))
    assert assignment_status(db, CLASSIC_BURGER).stale is False

    link_group_to_category(db, menu_category_code=BURGERS, modifier_group_code=SAUCES)
    db.commit()

    status = assignment_status(db, CLASSIC_BURGER)
    assert status.stale is True
    assert status.category_changed_at is not None


def test_reapply_category_picks_up_new_link_and_keeps_explicit_rows(db):
    overrides = [ModifierGroupOverride(code=TOPPINGS, max_selection=2)]
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], overrides=overrides))
    link_group_to_category(db, menu_category_code=BURGERS, modifier_group_code=SAUCES)
    db.commit()

    item_codes = reapply_category(db, BURGERS)

    assert item_codes == [CLASSIC_BURGER]
    assert _stored(db, CLASSIC_BURGER) == [(TOPPINGS, False), (BREAD, True), (SIDE, True), (SAUCES, True)]
    toppings_row = (
        db.query(ItemModifierAssignment)
        .filter(
            ItemModifierAssignment.menu_item_code == CLASSIC_BURGER,
            ItemModifierAssignment.modifier_group_code == TOPPINGS,
        )
        .one()
    )
    assert toppings_row.max_selection == 2
    assert assignment_status(db, CLASSIC_BURGER).stale is False


def test_duplicate_category_link_is_rejected(db):
    with pytest.raises(AssignmentValidationError):
        link_group_to_category(db, menu_category_code=BURGERS, modifier_group_code=BREAD)

    assert db.query(CategoryModifierLink).count() == 2


def test_override_min_above_single_select_limit_is_rejected(db):
    overrides = [ModifierGroupOverride(code=BREAD, min_selection=3)]

    with pytest.raises(AssignmentValidationError):
        save_item_assignments(db, CLASSIC_BURGER, _request([BREAD], overrides=overrides))

    assert _stored(db, CLASSIC_BURGER) == []


def test_override_min_above_group_max_is_rejected(db):
    overrides = [ModifierGroupOverride(code=TOPPINGS, min_selection=4)]

    with pytest.raises(AssignmentValidationError):
        save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], overrides=overrides))

    assert _stored(db, CLASSIC_BURGER) == []


def test_override_can_turn_single_select_into_multiselect(db):
    overrides = [ModifierGroupOverride(code=BREAD, is_multiselect=True, min_selection=2, max_selection=2)]

    save_item_assignments(db, CLASSIC_BURGER, _request([BREAD], overrides=overrides))

    projected = {entry.group_code: entry for entry in project_for_item(db, CLASSIC_BURGER)}
    assert projected[BREAD].is_multiselect is True
    assert projected[BREAD].min_selection == 2
    assert projected[BREAD].max_selection == 2


def test_override_code_is_matched_after_trimming(db):
    request = AssignmentWriteRequest(
        explicit_group_codes=[TOPPINGS],
        per_group_overrides=[{"code": f" {TOPPINGS} ", "max_selection": 2}],
    )

    save_item_assignments(db, CLASSIC_BURGER, request)

    projected = {entry.group_code: entry for entry in project_for_item(db, CLASSIC_BURGER)}
    assert projected[TOPPINGS].max_selection == 2


def test_status_is_stale_when_never_resolved_but_rows_exist(db):
    save_item_assignments(db, CLASSIC_BURGER, _request([TOPPINGS], inherit=False))
    item = db.query(MenuItem).filter(MenuItem.menu_item_code == CLASSIC_BURGER).one()
    item.modifiers_resolved_at = None
    db.commit()

    assert assignment_status(db, CLASSIC_BURGER).stale is True


def test_status_of_untouched_item_without_inheritable_groups_is_fresh(db):
    assert assignment_status(db, SODA).stale is False
