"""Collapse crawl candidates to one per URL."""

from __future__ import annotations

from typing import Iterable, List

from topicwatch.ingestion.article_types import Article


def dedupe(items: Iterable[Article]) -> List[Article]:
    """First occurrence of each URL wins; input order is kept."""
    seen = set()
    out = []
    for it in items:
        if it.url in seen:
            continue
        seen.add(it.url)
        out.append(it)
    return out
