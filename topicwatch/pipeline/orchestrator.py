"""Crawl one topic end to end.

    START -> KEYWORDS_READY -> CRAWLING -> DEDUPLICATING -> PERSISTING -> DONE
                                  (any) -> ABORTED

Failures of a single surface, keyword or article are logged to the topic
log and skipped. Storage outages and failures writing generated keywords
back to the topic abort the run and propagate to the caller.

Re-running a crawl never duplicates or overwrites stored items: each
article is checked by (topic, url) first, and the unique constraint catches
races with a concurrent run.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from topicwatch.ai.keywords import KeywordGenerator
from topicwatch.ai.summarizer import Summarizer
from topicwatch.ingestion.article_types import Article, NewsItem, Topic
from topicwatch.ingestion.crawler import SourceCrawler
from topicwatch.ingestion.dedup import dedupe
from topicwatch.observability.run_log import RunLog, TopicLog
from topicwatch.storage.errors import ConflictError, StorageUnavailableError
from topicwatch.storage.gateway import NewsGateway


logger = logging.getLogger(__name__)

ContentFetcher = Callable[[str], Optional[str]]


class CrawlState(str, Enum):
    START = "start"
    KEYWORDS_READY = "keywords_ready"
    CRAWLING = "crawling"
    DEDUPLICATING = "deduplicating"
    PERSISTING = "persisting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class CrawlReport:
    topic_id: int
    topic_title: str
    state: CrawlState = CrawlState.START
    keywords: List[str] = field(default_factory=list)
    found: int = 0
    unique: int = 0
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    keyword_failures: int = 0


class TopicCrawlOrchestrator:
    def __init__(
        self,
        repo: NewsGateway,
        crawler: SourceCrawler,
        keyword_generator: KeywordGenerator,
        summarizer: Summarizer,
        run_log: RunLog,
        *,
        content_fetcher: Optional[ContentFetcher] = None,
    ):
        self.repo = repo
        self.crawler = crawler
        self.keyword_generator = keyword_generator
        self.summarizer = summarizer
        self.run_log = run_log
        self.content_fetcher = content_fetcher

    def run(self, topic: Topic) -> CrawlReport:
        report = CrawlReport(topic_id=topic.id, topic_title=topic.title)
        self.run_log.clear_topic_logs(topic.id)
        tlog = self.run_log.topic(topic.id, logger)
        tlog.info(f"Starting news update for topic '{topic.title}'")

        try:
            report.keywords = self._ensure_keywords(topic, tlog)
            report.state = CrawlState.KEYWORDS_READY
            tlog.info(f"Searching with keywords: {', '.join(report.keywords)}")

            report.state = CrawlState.CRAWLING
            articles = self._crawl(topic, report, tlog)
            report.found = len(articles)

            report.state = CrawlState.DEDUPLICATING
            unique = dedupe(articles)
            report.unique = len(unique)
            tlog.info(f"{len(unique)} unique articles after dedup ({len(articles)} found)")

            report.state = CrawlState.PERSISTING
            self._persist(topic, unique, report, tlog)
        except Exception as e:
            tlog.error(f"Update for topic '{topic.title}' aborted during {report.state.value}: {e}")
            report.state = CrawlState.ABORTED
            raise

        report.state = CrawlState.DONE
        tlog.info(
            f"Finished topic '{topic.title}': processed {report.unique} articles, "
            f"{report.inserted} new, {report.skipped} already stored, {report.failed} failed"
        )
        return report

    def run_now(self, topic: Topic) -> threading.Thread:
        """Crawl `topic` in a background thread; errors are logged, not raised."""
        thread = threading.Thread(
            target=self._run_logged,
            args=(topic,),
            name=f"crawl-topic-{topic.id}",
            daemon=True,
        )
        thread.start()
        return thread

    def _run_logged(self, topic: Topic) -> None:
        try:
            self.run(topic)
        except Exception as e:
            logger.error(f"On-demand crawl for topic '{topic.title}' failed: {e}", exc_info=True)

    def _ensure_keywords(self, topic: Topic, tlog: TopicLog) -> List[str]:
        if topic.keywords:
            return list(topic.keywords)
        tlog.warning("Topic has no keywords, generating them")
        keywords = self.keyword_generator.generate(topic)
        self.repo.update_topic_keywords(topic.id, keywords)
        topic.keywords = list(keywords)
        tlog.info(f"Generated keywords: {', '.join(keywords)}")
        return list(keywords)

    def _crawl(self, topic: Topic, report: CrawlReport, tlog: TopicLog) -> List[Article]:
        articles: List[Article] = []
        for keyword in report.keywords:
            tlog.info(f"Searching keyword: {keyword}")
            try:
                found = self.crawler.fetch(topic, keyword)
            except Exception as e:
                report.keyword_failures += 1
                tlog.error(f"Search for keyword '{keyword}' failed: {e}")
                continue
            tlog.info(f"Keyword '{keyword}' found {len(found)} articles")
            articles.extend(found)
        return articles

    def _persist(self, topic: Topic, articles: List[Article], report: CrawlReport, tlog: TopicLog) -> None:
        for article in articles:
            tlog.info(f"Processing: {article.title}")
            try:
                if self.repo.find_news(topic.id, article.url) is not None:
                    report.skipped += 1
                    tlog.info(f"Already stored, skipping: {article.title}")
                    continue
                content = self._article_content(article)
                summary = self.summarizer.summarize(content)
                self.repo.insert_news(
                    NewsItem(
                        topic_id=topic.id,
                        title=article.title,
                        url=article.url,
                        source=article.source,
                        published_at=article.published_at,
                        content=content,
                        summary=summary,
                    )
                )
            except StorageUnavailableError:
                raise
            except ConflictError:
                report.skipped += 1
                tlog.info(f"Stored by a concurrent run, skipping: {article.title}")
                continue
            except Exception as e:
                report.failed += 1
                tlog.error(f"Failed to process {article.url}: {e}")
                continue
            report.inserted += 1
            tlog.info(f"Saved: {article.title}")

    def _article_content(self, article: Article) -> str:
        if self.content_fetcher is None:
            return article.content
        try:
            body = self.content_fetcher(article.url)
        except Exception as e:
            logger.warning(f"Full text fetch failed for {article.url}: {e}")
            body = None
        return body or article.content
