import os
import unittest
import uuid
from datetime import datetime, timezone

import psycopg

from topicwatch.ingestion.article_types import NewsItem
from topicwatch.storage.errors import ConflictError, StorageUnavailableError
from topicwatch.storage.postgres_repo import PostgresRepo
from topicwatch.storage.postgres_schema import ensure_postgres_schema


PG_DSN = os.environ.get("PG_DSN", "dbname=topicwatch user=topicwatch password=topicwatch host=localhost port=5432")


def _postgres_available() -> bool:
    try:
        with psycopg.connect(PG_DSN, connect_timeout=3):
            return True
    except psycopg.OperationalError:
        return False


@unittest.skipUnless(_postgres_available(), "Postgres not reachable at PG_DSN")
class TestPostgresRepo(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        ensure_postgres_schema(PG_DSN)
        cls.repo = PostgresRepo(PG_DSN)

    def setUp(self):
        self.topic = self.repo.create_topic(f"repo-test-{uuid.uuid4().hex[:8]}", "integration test topic")

    def tearDown(self):
        with psycopg.connect(PG_DSN, autocommit=True) as conn:
            conn.execute("DELETE FROM topics WHERE id = %s", (self.topic.id,))

    def _item(self, url="https://news.example.com/a"):
        return NewsItem(
            topic_id=self.topic.id,
            title="Title",
            url=url,
            source="Bing News",
            published_at=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
            content="content",
            summary="summary",
        )

    def test_insert_then_find(self):
        stored = self.repo.insert_news(self._item())
        self.assertIsNotNone(stored.id)
        found = self.repo.find_news(self.topic.id, "https://news.example.com/a")
        self.assertEqual(found.id, stored.id)
        self.assertIsNone(self.repo.find_news(self.topic.id, "https://news.example.com/other"))

    def test_duplicate_topic_url_conflicts_and_keeps_original(self):
        self.repo.insert_news(self._item())
        with self.assertRaises(ConflictError):
            self.repo.insert_news(NewsItem(**{**self._item().__dict__, "summary": "changed"}))
        self.assertEqual(self.repo.find_news(self.topic.id, "https://news.example.com/a").summary, "summary")

    def test_update_keywords_and_duplicate_title(self):
        self.repo.update_topic_keywords(self.topic.id, ["a", "b"])
        self.assertEqual(self.repo.get_topic(self.topic.id).keywords, ["a", "b"])
        with self.assertRaises(ConflictError):
            self.repo.create_topic(self.topic.title)

    def test_purge_expired(self):
        self.repo.insert_news(self._item())
        with psycopg.connect(PG_DSN, autocommit=True) as conn:
            conn.execute(
                "UPDATE news_items SET created_at = now() - interval '8 days' WHERE topic_id = %s",
                (self.topic.id,),
            )
        # still blocks the key until purged
        self.assertIsNotNone(self.repo.find_news(self.topic.id, "https://news.example.com/a"))
        self.assertGreaterEqual(self.repo.purge_expired(7), 1)
        self.assertIsNone(self.repo.find_news(self.topic.id, "https://news.example.com/a"))
        self.assertEqual(self.repo.list_news(self.topic.id), [])
        self.assertIsNotNone(self.repo.insert_news(self._item()).id)


class TestPostgresRepoUnavailable(unittest.TestCase):
    def test_unreachable_database_raises_unavailable(self):
        repo = PostgresRepo("host=127.0.0.1 port=1 dbname=x user=x connect_timeout=2")
        with self.assertRaises(StorageUnavailableError):
            repo.find_topics()


if __name__ == "__main__":
    unittest.main()
