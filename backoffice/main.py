import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.core.config import CORS_ORIGINS, DATABASE_URL, DB_ECHO, DB_POOL_PRE_PING
from backoffice.core.database import Base, Database
from backoffice.core.logging_setup import configure_logging
from backoffice.core.startup_checks import ensure_migrations_applied, validate_database_environment
from backoffice.middleware.observability import ObservabilityMiddleware
import backoffice.models  # garante que os models são importados antes do create_all

from backoffice.routers.admin_auth import router as admin_auth_router
from backoffice.routers.menu_categories import router as menu_categories_router
from backoffice.routers.menu_items import router as menu_items_router
from backoffice.routers.modifier_groups import router as modifier_groups_router
from backoffice.routers.modifier_items import router as modifier_items_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


def _startup_tasks(database: Database) -> None:
    try:
        validate_database_environment(database.url)
        engine = database.connect()
        if database.is_sqlite:
            # Em SQLite (dev) as tabelas são criadas direto; nos demais, via migrations.
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        database.dispose()
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database(DATABASE_URL, echo=DB_ECHO, pool_pre_ping=DB_POOL_PRE_PING)
    _startup_tasks(database)
    app.state.database = database
    try:
        yield
    finally:
        database.dispose()


app = FastAPI(
    title="Menu Back-office API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

# Routers
app.include_router(admin_auth_router)
app.include_router(menu_categories_router)
app.include_router(menu_items_router)
app.include_router(modifier_groups_router)
app.include_router(modifier_items_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    database = getattr(app.state, "database", None)
    healthy = database is not None and database.health_check()
    return {"status": "healthy" if healthy else "unhealthy", "database": healthy}
