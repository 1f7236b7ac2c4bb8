"""Storage interface used by the crawl pipeline."""

from __future__ import annotations

from typing import List, Optional, Sequence

from topicwatch.ingestion.article_types import NewsItem, Topic


class NewsGateway:
    """Topic + news persistence.

    Implementations must enforce a unique (topic, url) pair on news items and
    expire items a fixed number of days after they were created.
    """

    def find_news(self, topic_id: int, url: str) -> Optional[NewsItem]:
        raise NotImplementedError

    def insert_news(self, item: NewsItem) -> NewsItem:
        """Insert and return the stored item; ConflictError if (topic, url) exists."""
        raise NotImplementedError

    def find_topics(self) -> List[Topic]:
        raise NotImplementedError

    def update_topic_keywords(self, topic_id: int, keywords: Sequence[str]) -> None:
        raise NotImplementedError

    def purge_expired(self, retention_days: Optional[int] = None) -> int:
        """Delete items past retention; returns how many were removed."""
        raise NotImplementedError
