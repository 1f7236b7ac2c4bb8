"""Build the crawl pipeline from a Config."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from topicwatch.ai.completion import build_completion
from topicwatch.ai.keywords import KeywordGenerator
from topicwatch.ai.summarizer import Summarizer
from topicwatch.config import Config
from topicwatch.extraction.fulltext import article_body
from topicwatch.ingestion.crawler import SourceCrawler
from topicwatch.ingestion.sources import select_surfaces
from topicwatch.observability.log_files import configure_logging
from topicwatch.observability.run_log import RunLog
from topicwatch.pipeline.orchestrator import TopicCrawlOrchestrator
from topicwatch.pipeline.scheduler import Scheduler
from topicwatch.storage.postgres_repo import PostgresRepo
from topicwatch.storage.postgres_schema import ensure_postgres_schema


logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    config: Config
    run_log: RunLog
    repo: PostgresRepo
    keyword_generator: KeywordGenerator
    orchestrator: TopicCrawlOrchestrator
    scheduler: Scheduler


def build_pipeline(config: Config, *, setup_logging: bool = True, ensure_schema: bool = True) -> Pipeline:
    run_log = RunLog(max_process_logs=config.max_process_logs, max_topic_logs=config.max_topic_logs)
    if setup_logging:
        configure_logging(config.log_dir, run_log)

    if ensure_schema:
        ensure_postgres_schema(config.pg_dsn)
    repo = PostgresRepo(config.pg_dsn, retention_days=config.retention_days)

    completion = build_completion(config)
    keyword_generator = KeywordGenerator(completion, max_keywords=config.max_keywords)
    summarizer = Summarizer(completion, fallback_chars=config.summary_fallback_chars)
    crawler = SourceCrawler(
        run_log,
        surfaces=select_surfaces(config.surfaces),
        navigation_timeout=config.navigation_timeout,
        selector_timeout=config.selector_timeout,
        max_results_per_surface=config.max_results_per_surface,
        headless=config.headless,
    )
    orchestrator = TopicCrawlOrchestrator(
        repo,
        crawler,
        keyword_generator,
        summarizer,
        run_log,
        content_fetcher=article_body if config.fetch_fulltext else None,
    )
    scheduler = Scheduler(
        repo,
        orchestrator,
        run_time=config.schedule_time,
        retention_days=config.retention_days,
    )
    logger.info(f"Pipeline ready: {len(crawler.surfaces)} search surfaces, schedule {config.schedule_time}")
    return Pipeline(
        config=config,
        run_log=run_log,
        repo=repo,
        keyword_generator=keyword_generator,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )
