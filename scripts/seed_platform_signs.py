#!/usr/bin/env python3
"""
Upsert the platform default sign set into the `signs` table.

Usage:
    DATABASE_URL=postgresql://... python scripts/seed_platform_signs.py

Existing rows keep their stock counts; only descriptive columns refresh.
"""
import os
import sys

import psycopg2
from psycopg2.extras import DictCursor
from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
load_dotenv()

from database import PostgresDB
from services.catalog import PostgresSignCatalog, build_platform_signs
from utils.redaction import redact_database_url


def seed(db_url):
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)

    print(f"[Seed] Connecting to {redact_database_url(db_url)}")
    db = PostgresDB(psycopg2.connect(db_url, cursor_factory=DictCursor))
    try:
        count = PostgresSignCatalog(db_factory=lambda: db).upsert_signs(build_platform_signs())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(f"[Seed] Upserted {count} platform signs.")
    return count


if __name__ == "__main__":
    url = os.environ.get("DATABASE_URL")
    if not url:
        print("DATABASE_URL not set")
        sys.exit(1)
    seed(url)
