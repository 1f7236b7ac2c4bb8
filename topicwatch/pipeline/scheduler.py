"""Daily sweep over all topics.

At most one sweep runs at a time: a tick that arrives while a sweep is in
progress is logged and dropped, never queued. Topics are crawled one after
another, and a failing topic does not stop the rest.

On-demand crawls (`TopicCrawlOrchestrator.run_now`) bypass this guard; the
storage layer's (topic, url) uniqueness keeps overlapping runs safe.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

import schedule

from topicwatch.pipeline.orchestrator import CrawlReport, TopicCrawlOrchestrator
from topicwatch.storage.gateway import NewsGateway


logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    topics: int = 0
    succeeded: int = 0
    failed: int = 0
    purged: int = 0
    reports: List[CrawlReport] = field(default_factory=list)


class Scheduler:
    def __init__(
        self,
        repo: NewsGateway,
        orchestrator: TopicCrawlOrchestrator,
        *,
        run_time: str = "09:00",
        retention_days: int = 7,
        jobs: Optional[schedule.Scheduler] = None,
    ):
        self.repo = repo
        self.orchestrator = orchestrator
        self.run_time = run_time
        self.retention_days = retention_days
        self.jobs = jobs or schedule.Scheduler()
        self._sweep_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._sweep_lock.locked()

    def run_sweep(self) -> Optional[SweepReport]:
        """Crawl every topic once. Returns None if a sweep was already running."""
        if not self._sweep_lock.acquire(blocking=False):
            logger.warning("Previous update has not finished yet, skipping this run")
            return None
        try:
            return self._sweep()
        finally:
            self._sweep_lock.release()

    def _sweep(self) -> SweepReport:
        report = SweepReport()
        logger.info("Starting daily news update")

        try:
            report.purged = self.repo.purge_expired(self.retention_days)
            logger.info(f"Purged {report.purged} news items older than {self.retention_days} days")
        except Exception as e:
            logger.error(f"Retention purge failed: {e}")

        try:
            topics = self.repo.find_topics()
        except Exception as e:
            logger.error(f"Could not load topics, aborting daily update: {e}")
            return report

        report.topics = len(topics)
        for topic in topics:
            try:
                report.reports.append(self.orchestrator.run(topic))
                report.succeeded += 1
            except Exception as e:
                report.failed += 1
                logger.error(f"Update for topic '{topic.title}' failed: {e}")

        logger.info(
            f"Daily news update finished: {report.succeeded}/{report.topics} topics ok, {report.failed} failed"
        )
        return report

    def start(self) -> schedule.Job:
        job = self.jobs.every().day.at(self.run_time).do(self.run_sweep)
        logger.info(f"Daily update scheduled at {self.run_time}; next run {job.next_run}")
        return job

    def run_forever(self, stop: threading.Event, *, poll_seconds: float = 30.0) -> None:
        while not stop.is_set():
            self.jobs.run_pending()
            stop.wait(poll_seconds)
        logger.info("Scheduler stopped")
