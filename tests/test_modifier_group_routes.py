from types import SimpleNamespace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from backoffice.core.database import get_db
from backoffice.deps import require_admin_user
from backoffice.models.category_modifier_link import CategoryModifierLink
from backoffice.models.item_modifier_assignment import ItemModifierAssignment
from backoffice.models.modifier_group import ModifierGroup
from backoffice.models.modifier_item import ModifierItem
from backoffice.routers.menu_items import router as menu_items_router
from backoffice.routers.modifier_groups import router as modifier_groups_router
from backoffice.routers.modifier_items import router as modifier_items_router
from tests.fixtures_data import (
    BREAD,
    BURGERS,
    CLASSIC_BURGER,
    HAPPY_PATH_ADMIN,
    SAUCES,
    SIDE,
    TOPPINGS,
    build_session,
    seed_menu,
)


def _build_client(role: str = "super_admin"):
    db = build_session()
    seed_menu(db)

    app = FastAPI()
    app.include_router(modifier_groups_router)
    app.include_router(modifier_items_router)
    app.include_router(menu_items_router)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[require_admin_user] = lambda: SimpleNamespace(**{**HAPPY_PATH_ADMIN, "role": role})

    return TestClient(app), db


def test_list_groups_filtered_by_category_includes_assigned_categories():
    client, _db = _build_client()

    response = client.get("/api/modifier-groups", params={"menu_category_code": BURGERS})

    assert response.status_code == 200
    body = {group["modifier_group_code"]: group for group in response.json()}
    assert set(body) == {BREAD, SIDE}
    assert body[BREAD]["assigned_categories"] == [{"code": BURGERS, "name": "Burgers"}]


def test_list_groups_for_category_without_links_is_empty():
    client, _db = _build_client()

    response = client.get("/api/modifier-groups", params={"menu_category_code": "W002"})

    assert response.status_code == 200
    assert response.json() == []


def test_get_group_returns_items_with_nulls_last():
    client, _db = _build_client()

    response = client.get(f"/api/modifier-groups/{TOPPINGS}")

    assert response.status_code == 200
    names = [item["name"] for item in response.json()["items"]]
    assert names == ["Picles", "Queijo", "Bacon", "Cebola crispy"]


def test_get_unknown_group_returns_404():
    client, _db = _build_client()

    assert client.get("/api/modifier-groups/W999").status_code == 404


def test_available_modifiers_summarise_group_configuration():
    client, _db = _build_client()

    response = client.get("/api/modifier-groups/available")

    assert response.status_code == 200
    body = {group["modifier_group_code"]: group for group in response.json()}
    assert body[TOPPINGS]["config_summary"] == "Optional, multi select"
    assert body[TOPPINGS]["item_count"] == 3
    assert body[TOPPINGS]["sample_items"] == ["Queijo", "Bacon", "Cebola crispy"]
    assert body[BREAD]["config_summary"] == "Required, single select"
    assert body[SIDE]["pos_name"] == "Acomp."
    assert body[BREAD]["pos_name"] == "Pão"


def test_create_group_generates_code_and_validates_bounds():
    client, _db = _build_client()

    created = client.post(
        "/api/modifier-groups",
        json={"group_name": "Ponto da carne", "is_required": True, "min_selection": 1, "max_selection": 1},
    )
    invalid = client.post(
        "/api/modifier-groups",
        json={"group_name": "Inválido", "min_selection": 3, "max_selection": 1},
    )

    assert created.status_code == 201
    assert created.json()["modifier_group_code"] == "W005"
    assert invalid.status_code == 422


def test_update_group_rejects_bounds_crossing_stored_values():
    client, _db = _build_client()

    response = client.put(f"/api/modifier-groups/{TOPPINGS}", json={"min_selection": 5})

    assert response.status_code == 400


def test_update_group_changes_projection_defaults():
    client, _db = _build_client()
    client.post(f"/api/menu/items/{CLASSIC_BURGER}/modifiers", json={"explicit_group_codes": [TOPPINGS]})

    client.put(f"/api/modifier-groups/{TOPPINGS}", json={"is_required": True})

    projected = {
        entry["group_code"]: entry for entry in client.get(f"/api/menu/items/{CLASSIC_BURGER}/modifiers").json()
    }
    assert projected[TOPPINGS]["is_required"] is True


def test_delete_group_cascades_to_items_links_and_assignments():
    client, db = _build_client()
    client.post(f"/api/menu/items/{CLASSIC_BURGER}/modifiers", json={"explicit_group_codes": [TOPPINGS]})

    response = client.delete(f"/api/modifier-groups/{BREAD}")

    assert response.status_code == 200
    assert db.query(ModifierGroup).filter(ModifierGroup.modifier_group_code == BREAD).first() is None
    assert db.query(ModifierItem).filter(ModifierItem.modifier_group_code == BREAD).count() == 0
    assert db.query(CategoryModifierLink).filter(CategoryModifierLink.modifier_group_code == BREAD).count() == 0
    assert (
        db.query(ItemModifierAssignment).filter(ItemModifierAssignment.modifier_group_code == BREAD).count() == 0
    )


def test_outlet_manager_cannot_delete_group():
    client, db = _build_client(role="outlet_manager")

    response = client.delete(f"/api/modifier-groups/{SAUCES}")

    assert response.status_code == 403
    assert db.query(ModifierGroup).filter(ModifierGroup.modifier_group_code == SAUCES).first() is not None


def test_modifier_item_crud():
    client, db = _build_client()

    created = client.post(
        f"/api/modifier-groups/{SAUCES}/items",
        json={"name": "Barbecue", "price": "2.00", "display_order": 1},
    )
    assert created.status_code == 201
    item_code = created.json()["modifier_item_code"]
    assert item_code == "W008"

    updated = client.put(f"/api/modifier-groups/{SAUCES}/items/{item_code}", json={"is_active": False})
    assert updated.status_code == 200
    assert updated.json()["is_active"] is False

    listed = client.get(f"/api/modifier-groups/{SAUCES}/items")
    assert [item["modifier_item_code"] for item in listed.json()] == [item_code]

    deleted = client.delete(f"/api/modifier-groups/{SAUCES}/items/{item_code}")
    assert deleted.status_code == 200
    assert db.query(ModifierItem).filter(ModifierItem.modifier_item_code == item_code).first() is None


def test_modifier_item_for_unknown_group_returns_404():
    client, _db = _build_client()

    response = client.post("/api/modifier-groups/W999/items", json={"name": "Órfão"})

    assert response.status_code == 404


def test_modifier_item_from_other_group_is_not_found():
    client, _db = _build_client()

    response = client.put(f"/api/modifier-groups/{SAUCES}/items/W004", json={"name": "Bacon duplo"})

    assert response.status_code == 404
