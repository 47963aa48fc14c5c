from fastapi.testclient import TestClient

from backoffice.core.database import Database

REQUIRED_ROUTES = {
    "/api/menu/items/{item_code}/modifiers",
    "/api/menu/items/{item_code}/modifiers/status",
    "/api/menu/categories/{category_code}/modifier-groups",
    "/api/menu/categories/{category_code}/modifier-groups/{group_code}",
    "/api/menu/categories/{category_code}/modifier-groups/reapply",
    "/api/modifier-groups",
    "/api/modifier-groups/available",
    "/api/modifier-groups/{group_code}/items",
    "/api/admin/auth/login",
    "/health",
}


def test_api_startup_and_router_registration(monkeypatch):
    from backoffice import main

    monkeypatch.setattr(main, "DATABASE_URL", "sqlite+pysqlite:///:memory:")

    with TestClient(main.app) as client:
        response = client.get("/")
        health_response = client.get("/health")
        openapi_response = client.get("/openapi.json")
        database = main.app.state.database

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert health_response.json() == {"status": "healthy", "database": True}
    assert openapi_response.status_code == 200
    assert health_response.headers["X-Request-ID"]

    paths = {getattr(route, "path", None) for route in main.app.routes} | set(openapi_response.json()["paths"])
    assert REQUIRED_ROUTES.issubset(paths)
    # lifespan encerrado: engine descartado
    assert database.health_check() is False


def test_database_lifecycle():
    database = Database("sqlite+pysqlite:///:memory:")

    assert database.health_check() is False
    database.connect()
    assert database.health_check() is True
    session = database.session()
    session.close()
    database.dispose()
    assert database.health_check() is False
