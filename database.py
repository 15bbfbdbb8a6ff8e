import os
import logging

import psycopg2
from psycopg2.extras import DictCursor
from flask import g

from config import IS_PRODUCTION
from utils.redaction import redact_database_url

logger = logging.getLogger(__name__)


def get_db():
    if 'db' not in g:
        db_url = os.environ.get("DATABASE_URL")
        if not db_url:
            raise RuntimeError("DATABASE_URL is required for Postgres connection.")

        if db_url.startswith("postgres://"):
            db_url = db_url.replace("postgres://", "postgresql://", 1)

        if not db_url.startswith("postgresql://"):
            redacted = redact_database_url(db_url)
            raise ValueError(
                "Only Postgres is supported. DATABASE_URL must start with postgresql:// "
                f"(got {redacted})."
            )

        try:
            conn = psycopg2.connect(db_url, cursor_factory=DictCursor)
            g.db = PostgresDB(conn)
        except Exception as e:
            logger.error(
                "[DB] Connection Failed (%s) while connecting to %s",
                type(e).__name__,
                redact_database_url(db_url),
            )
            raise
    return g.db


def close_connection(exception=None):
    db = g.pop('db', None)
    if db is not None:
        db.close()


class PostgresDB:
    """
    Strict Postgres wrapper.
    Passes SQL through to psycopg2 without modification.
    Expects %s placeholders.
    """
    def __init__(self, conn):
        self._conn = conn

    def execute(self, sql, params=None):
        cur = self._conn.cursor()
        try:
            cur.execute(sql, params)
            return cur
        except Exception as e:
            # In PROD, do NOT log raw SQL (PII Risk)
            logger.error(f"[DB] Query Failed: {e}")
            if not IS_PRODUCTION:
                logger.error(f"[DB] SQL: {sql}")
            raise

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()

    def cursor(self):
        return self._conn.cursor()
