"""Postgres repository for topics and news items.

Plain psycopg + SQL, one autocommit connection per call. Connection-level
failures surface as StorageUnavailableError so the pipeline can tell "the
database is gone" apart from a bad row.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

import psycopg

from topicwatch.ingestion.article_types import NewsItem, Topic
from topicwatch.storage.errors import ConflictError, StorageUnavailableError
from topicwatch.storage.gateway import NewsGateway


DEFAULT_RETENTION_DAYS = 7

_TOPIC_COLUMNS = "id, title, description, keywords, created_at, updated_at"
_NEWS_COLUMNS = "id, topic_id, title, url, source, published_at, content, summary, created_at"


def _row_to_topic(row) -> Topic:
    tid, title, description, keywords, created_at, updated_at = row
    return Topic(
        id=int(tid),
        title=title,
        description=description or "",
        keywords=list(keywords or []),
        created_at=created_at,
        updated_at=updated_at,
    )


def _row_to_news(row) -> NewsItem:
    nid, topic_id, title, url, source, published_at, content, summary, created_at = row
    return NewsItem(
        id=int(nid),
        topic_id=int(topic_id),
        title=title,
        url=url,
        source=source,
        published_at=published_at,
        content=content,
        summary=summary,
        created_at=created_at,
    )


class PostgresRepo(NewsGateway):
    def __init__(self, pg_dsn: str, *, retention_days: int = DEFAULT_RETENTION_DAYS):
        self.pg_dsn = pg_dsn
        self.retention_days = retention_days

    @contextmanager
    def _cursor(self) -> Iterator[psycopg.Cursor]:
        try:
            with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
                with conn.cursor() as cur:
                    yield cur
        except psycopg.OperationalError as e:
            raise StorageUnavailableError(f"Postgres unavailable: {e}") from e

    # -----------------------------
    # Topics
    # -----------------------------
    def find_topics(self) -> List[Topic]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_TOPIC_COLUMNS} FROM topics ORDER BY created_at DESC, id DESC")
            rows = cur.fetchall()
        return [_row_to_topic(r) for r in rows]

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_TOPIC_COLUMNS} FROM topics WHERE id = %s", (int(topic_id),))
            row = cur.fetchone()
        return _row_to_topic(row) if row else None

    def create_topic(self, title: str, description: str = "", keywords: Sequence[str] = ()) -> Topic:
        title = (title or "").strip()
        if not title:
            raise ValueError("Topic title must not be empty")
        with self._cursor() as cur:
            try:
                cur.execute(
                    f"""
                    INSERT INTO topics (title, description, keywords)
                    VALUES (%s, %s, %s)
                    RETURNING {_TOPIC_COLUMNS}
                    """,
                    (title, (description or "").strip(), list(keywords)),
                )
            except psycopg.errors.UniqueViolation as e:
                raise ConflictError(f"Topic '{title}' already exists") from e
            row = cur.fetchone()
        return _row_to_topic(row)

    def update_topic_keywords(self, topic_id: int, keywords: Sequence[str]) -> None:
        with self._cursor() as cur:
            cur.execute(
                "UPDATE topics SET keywords = %s, updated_at = now() WHERE id = %s",
                (list(keywords), int(topic_id)),
            )
            if cur.rowcount == 0:
                raise LookupError(f"Topic {topic_id} not found")

    # -----------------------------
    # News items
    # -----------------------------
    def find_news(self, topic_id: int, url: str) -> Optional[NewsItem]:
        """Stored item for (topic, url), matching the unique key.

        Expired rows still count until `purge_expired` deletes them.
        """
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_NEWS_COLUMNS}
                FROM news_items
                WHERE topic_id = %s AND url = %s
                """,
                (int(topic_id), url),
            )
            row = cur.fetchone()
        return _row_to_news(row) if row else None

    def insert_news(self, item: NewsItem) -> NewsItem:
        with self._cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO news_items (topic_id, title, url, source, published_at, content, summary)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (topic_id, url) DO NOTHING
                RETURNING {_NEWS_COLUMNS}
                """,
                (
                    int(item.topic_id),
                    item.title,
                    item.url,
                    item.source,
                    item.published_at,
                    item.content,
                    item.summary,
                ),
            )
            row = cur.fetchone()
        if row is None:
            raise ConflictError(f"News item already stored for topic {item.topic_id}: {item.url}")
        return _row_to_news(row)

    def list_news(self, topic_id: int, *, limit: int = 20) -> List[NewsItem]:
        limit = max(1, min(int(limit), 200))
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_NEWS_COLUMNS}
                FROM news_items
                WHERE topic_id = %s
                ORDER BY published_at DESC
                LIMIT %s
                """,
                (int(topic_id), limit),
            )
            rows = cur.fetchall()
        return [_row_to_news(r) for r in rows]

    def purge_expired(self, retention_days: Optional[int] = None) -> int:
        """Delete items created more than `retention_days` ago; returns the count."""
        days = int(retention_days if retention_days is not None else self.retention_days)
        with self._cursor() as cur:
            cur.execute(
                "DELETE FROM news_items WHERE created_at < now() - make_interval(days => %s)",
                (days,),
            )
            return int(cur.rowcount or 0)
