import os

from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./backoffice.db")
DB_ECHO = _env_flag("DB_ECHO", "0")
DB_POOL_PRE_PING = _env_flag("DB_POOL_PRE_PING", "1")

ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

# Read-only context stamped on created rows; never used to filter queries.
STORE_CODE = os.getenv("STORE_CODE", "").strip() or None

# Business codes (W001, W002, ...)
CODE_PREFIX = os.getenv("CODE_PREFIX", "W").strip() or "W"
CODE_WIDTH = int(os.getenv("CODE_WIDTH", "3"))
CODE_MAX_RETRIES = int(os.getenv("CODE_MAX_RETRIES", "3"))

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

ADMIN_SESSION_SECRET = os.getenv("ADMIN_SESSION_SECRET", "")
ADMIN_SESSION_MAX_AGE_SECONDS = int(os.getenv("ADMIN_SESSION_MAX_AGE_SECONDS", "604800"))
ADMIN_SESSION_COOKIE_SECURE = _env_flag("ADMIN_SESSION_COOKIE_SECURE", "0" if IS_DEV else "1")
ADMIN_SESSION_COOKIE_HTTPONLY = _env_flag("ADMIN_SESSION_COOKIE_HTTPONLY", "1")
ADMIN_SESSION_COOKIE_SAMESITE = os.getenv(
    "ADMIN_SESSION_COOKIE_SAMESITE",
    "lax",
).strip().lower()
if ADMIN_SESSION_COOKIE_SAMESITE not in {"lax", "strict", "none"}:
    ADMIN_SESSION_COOKIE_SAMESITE = "lax"
ADMIN_SESSION_COOKIE_DOMAIN = os.getenv("ADMIN_SESSION_COOKIE_DOMAIN", "").strip() or None
