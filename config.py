import os
import logging
from urllib.parse import urlparse

from utils.env import get_env_str, get_env_bool, get_env_int

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

# -----------------------------------------------------------------------------
# Dotenv loading (LOCAL ONLY)
# -----------------------------------------------------------------------------
# Rules:
# - Deployed environments are configured via real environment variables.
# - Tests must be deterministic and must NOT implicitly ingest a developer's repo-root .env.
# - Local dev may use .env for convenience.
_FLASK_ENV_EARLY = (os.getenv("FLASK_ENV") or "").strip().lower()

if _FLASK_ENV_EARLY not in {"test", "testing"}:
    from dotenv import load_dotenv
    load_dotenv(dotenv_path=os.path.join(BASE_DIR, ".env"), override=False)

# -----------------------------------------------------------------------------
# Environment / Stage
# -----------------------------------------------------------------------------
def _normalize_stage(raw: str) -> str:
    raw = (raw or "").strip().lower()
    if raw in {"prod", "production"}:
        return "production"
    if raw in {"stage", "staging"}:
        return "staging"
    if raw in {"test", "testing"}:
        return "test"
    return "dev"


FLASK_ENV = (os.getenv("FLASK_ENV", "development") or "development").strip().lower()
APP_STAGE = _normalize_stage(os.getenv("APP_STAGE", "dev"))

IS_TEST = APP_STAGE == "test" or FLASK_ENV in {"test", "testing"}
IS_STAGING = APP_STAGE == "staging"
IS_PRODUCTION = APP_STAGE == "production"

DEBUG = FLASK_ENV != "production" and not IS_PRODUCTION
TESTING = IS_TEST

# -----------------------------------------------------------------------------
# Hold Store Backend
# -----------------------------------------------------------------------------
HOLD_STORE_BACKEND = get_env_str("HOLD_STORE_BACKEND", default="memory").strip().lower()

if HOLD_STORE_BACKEND not in {"memory", "postgres"}:
    raise ValueError(f"CRITICAL: HOLD_STORE_BACKEND must be 'memory' or 'postgres'. Got: {HOLD_STORE_BACKEND}")

# Holds kept in one process's memory are invisible to other workers.
if IS_PRODUCTION and HOLD_STORE_BACKEND != "postgres":
    raise RuntimeError("CRITICAL: HOLD_STORE_BACKEND must be 'postgres' in production.")

if IS_STAGING and HOLD_STORE_BACKEND != "postgres":
    logger.warning("[Config] WARNING: HOLD_STORE_BACKEND is not 'postgres' in staging. Expect drift vs production.")

# -----------------------------------------------------------------------------
# Database (Postgres-only, required by the postgres backend)
# -----------------------------------------------------------------------------
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL and HOLD_STORE_BACKEND == "postgres":
    raise RuntimeError("DATABASE_URL environment variable is required when HOLD_STORE_BACKEND=postgres.")

if DATABASE_URL:
    # Normalize postgres:// -> postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
        os.environ["DATABASE_URL"] = DATABASE_URL

    if not DATABASE_URL.startswith("postgresql://"):
        # Never include credentials in errors/logs.
        try:
            p = urlparse(DATABASE_URL)
            got = f"{p.scheme}://{p.hostname}" if p.scheme else "INVALID_URL"
        except ValueError:
            got = "INVALID_URL"
        raise ValueError(
            f"CRITICAL: DATABASE_URL must be a PostgreSQL URL (postgresql://...). Got: {got}. Non-Postgres DBs are forbidden."
        )

# -----------------------------------------------------------------------------
# Secrets
# -----------------------------------------------------------------------------
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    if IS_STAGING or IS_PRODUCTION:
        raise ValueError(f"SECRET_KEY must be set in {APP_STAGE} environment.")
    SECRET_KEY = "dev-secret-key-change-this"
    logger.warning("[Config] WARNING: Using default SECRET_KEY for development. DO NOT use in real environments!")

# Shared secret for POST /cron/clear-expired-holds (X-CRON-TOKEN header).
CRON_TOKEN = get_env_str("CRON_TOKEN")
if not CRON_TOKEN and (IS_STAGING or IS_PRODUCTION):
    logger.warning(f"[Config] WARNING: CRON_TOKEN is not set in {APP_STAGE}. The cleanup endpoint will refuse every call.")

# -----------------------------------------------------------------------------
# Rate Limiting
# -----------------------------------------------------------------------------
RATELIMIT_STORAGE_URI = get_env_str("RATELIMIT_STORAGE_URI", default="memory://")
RATELIMIT_ENABLED = get_env_bool("RATELIMIT_ENABLED", default=not IS_TEST)
HOLD_RATE_LIMIT = get_env_str("HOLD_RATE_LIMIT", default="30 per minute")

# -----------------------------------------------------------------------------
# Request limits
# -----------------------------------------------------------------------------
MAX_CONTENT_LENGTH = get_env_int("MAX_CONTENT_LENGTH", default=1 * 1024 * 1024)

# -----------------------------------------------------------------------------
# Proxy
# -----------------------------------------------------------------------------
# Rate limits key on the client address, which is only correct behind a
# proxy once X-Forwarded-For is trusted.
TRUST_PROXY_HEADERS = get_env_bool("TRUST_PROXY_HEADERS", default=False)
PROXY_FIX_NUM_PROXIES = get_env_int("PROXY_FIX_NUM_PROXIES", default=1)
