#!/usr/bin/env python3
"""Apply Alembic migrations for the Postgres hold store."""
import sys
import os
from dotenv import load_dotenv

# Load .env before reading any environment variables
dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
    print("[Manage] Loaded .env file")

# Put this script in the root so it can import local modules
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from utils.redaction import redact_database_url


def migrate():
    print("[Manage] Starting database migration...")

    # Run Alembic directly (no Flask app) so one-off migration tasks don't
    # depend on app secrets.
    database_url = os.environ.get("DATABASE_URL", "").strip()

    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
        print("[Manage] Converted postgres:// to postgresql://")
        # env.py reads the corrected URL from the environment
        os.environ["DATABASE_URL"] = database_url

    if not database_url:
        print("[Manage] ERROR: DATABASE_URL environment variable is not set.")
        print("[Manage] Only Postgres is supported.")
        sys.exit(1)

    print(f"[Manage] DATABASE_URL format: {redact_database_url(database_url)}")

    if not database_url.startswith("postgresql://"):
        print("[Manage] ERROR: Only Postgres is supported.")
        sys.exit(1)

    from alembic.config import Config
    from alembic import command

    try:
        alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
        command.upgrade(alembic_cfg, "head")
    except Exception as e:
        print(f"[Manage] Alembic migration FAILED: {e}")
        sys.exit(1)

    print("[Manage] Alembic migration to 'head' successful.")


if __name__ == "__main__":
    migrate()
