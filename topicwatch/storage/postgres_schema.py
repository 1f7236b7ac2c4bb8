"""Postgres schema management.

Schema creation is idempotent (CREATE IF NOT EXISTS) and safe to run on
every start.
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg


SCHEMA_STATEMENTS: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS topics (
      id BIGSERIAL PRIMARY KEY,
      title TEXT NOT NULL UNIQUE CHECK (length(btrim(title)) > 0),
      description TEXT NOT NULL DEFAULT '',
      keywords TEXT[] NOT NULL DEFAULT '{}',
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    # One row per (topic, url); rows expire NEWS_RETENTION_DAYS after created_at
    """
    CREATE TABLE IF NOT EXISTS news_items (
      id BIGSERIAL PRIMARY KEY,
      topic_id BIGINT NOT NULL REFERENCES topics(id) ON DELETE CASCADE,
      title TEXT NOT NULL,
      url TEXT NOT NULL,
      source TEXT NOT NULL,
      published_at TIMESTAMPTZ NOT NULL,
      content TEXT NOT NULL,
      summary TEXT NOT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CONSTRAINT uq_news_items_topic_url UNIQUE (topic_id, url)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_news_items_published_at ON news_items (published_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_news_items_created_at ON news_items (created_at);",
    "CREATE INDEX IF NOT EXISTS idx_news_items_topic_published ON news_items (topic_id, published_at DESC);",
]


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    """Ensure Postgres schema exists."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
