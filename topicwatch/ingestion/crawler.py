"""Keyword crawl over the registered search surfaces.

For one keyword, every surface is queried in turn through a short-lived
browser session. A surface that times out or errors is logged and skipped;
the keyword still returns whatever the other surfaces produced.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, ContextManager, List, Optional, Sequence

from bs4 import BeautifulSoup
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from topicwatch.ingestion.article_types import Article, Topic
from topicwatch.ingestion.browser import browser_session
from topicwatch.ingestion.dates import normalize_date
from topicwatch.ingestion.sources import DEFAULT_SURFACES, SearchSurface
from topicwatch.ingestion.url_utils import resolve_result_url
from topicwatch.observability.run_log import RunLog, TopicLog


logger = logging.getLogger(__name__)

SessionFactory = Callable[..., ContextManager]


def _clean(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def parse_results(
    html: str,
    surface: SearchSurface,
    keyword: str,
    *,
    page_url: str,
    reference: datetime,
    limit: int = 20,
) -> List[Article]:
    """Extract complete results from a rendered search page.

    A result needs a title, a usable link and a snippet; anything missing one
    of those is dropped.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    out: List[Article] = []
    for node in soup.select(surface.container_selector):
        if len(out) >= limit:
            break
        title_el = node.select_one(surface.title_selector)
        link_el = node.select_one(surface.link_selector)
        title = _clean(title_el.get_text(" ", strip=True)) if title_el else ""
        href = node.get(surface.target_attr) if surface.target_attr else None
        if not href and link_el is not None:
            href = link_el.get("href")
        url = resolve_result_url(href, page_url, redirect_param=surface.redirect_param)

        snippet = ""
        if surface.snippet_selector:
            snippet_el = node.select_one(surface.snippet_selector)
            snippet = _clean(snippet_el.get_text(" ", strip=True)) if snippet_el else ""

        raw_date = None
        if surface.date_selector:
            date_el = node.select_one(surface.date_selector)
            if date_el is not None:
                raw_date = date_el.get("datetime") or _clean(date_el.get_text(" ", strip=True)) or None

        if not title or not url or not snippet:
            continue
        out.append(
            Article(
                title=title,
                url=url,
                source=surface.label,
                content=snippet,
                keyword=keyword,
                published_at=normalize_date(raw_date, reference),
                raw_date=raw_date,
            )
        )
    return out


class SourceCrawler:
    def __init__(
        self,
        run_log: RunLog,
        *,
        surfaces: Optional[Sequence[SearchSurface]] = None,
        session_factory: SessionFactory = browser_session,
        navigation_timeout: float = 30.0,
        selector_timeout: float = 10.0,
        max_results_per_surface: int = 20,
        headless: bool = True,
    ):
        self.run_log = run_log
        self.surfaces = list(surfaces) if surfaces is not None else list(DEFAULT_SURFACES)
        self.session_factory = session_factory
        self.navigation_timeout = navigation_timeout
        self.selector_timeout = selector_timeout
        self.max_results_per_surface = max_results_per_surface
        self.headless = headless

    def fetch(self, topic: Topic, keyword: str) -> List[Article]:
        tlog = self.run_log.topic(topic.id, logger)
        now = datetime.now(timezone.utc)
        results: List[Article] = []
        failures = 0
        for surface in self.surfaces:
            try:
                found = self._crawl_surface(surface, keyword, tlog, now)
            except PlaywrightTimeoutError as e:
                failures += 1
                tlog.warning(f"[{surface.label}] navigation timed out for '{keyword}': {e}")
                continue
            except Exception as e:
                failures += 1
                tlog.error(f"[{surface.label}] crawl failed for '{keyword}': {e}")
                continue
            tlog.info(f"[{surface.label}] '{keyword}': {len(found)} results")
            results.extend(found)

        if failures:
            tlog.warning(f"'{keyword}': {failures}/{len(self.surfaces)} surfaces failed")
        return results

    def _crawl_surface(self, surface: SearchSurface, keyword: str, tlog: TopicLog, now: datetime) -> List[Article]:
        url = surface.build_url(keyword)
        tlog.info(f"[{surface.label}] navigating to {url}")
        with self.session_factory(headless=self.headless, navigation_timeout=self.navigation_timeout) as page:
            page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout * 1000)
            try:
                page.wait_for_selector(surface.container_selector, timeout=self.selector_timeout * 1000)
            except PlaywrightTimeoutError:
                tlog.warning(f"[{surface.label}] no results container after {self.selector_timeout:.0f}s, skipping")
                return []
            html = page.content()
            page_url = page.url or url
        return parse_results(
            html,
            surface,
            keyword,
            page_url=page_url,
            reference=now,
            limit=self.max_results_per_surface,
        )
