"""Shared crawl data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class Article:
    """Crawl candidate found on a search surface.

    Lives only for the duration of one topic crawl; it is either dropped
    (duplicate, incomplete) or promoted into a stored NewsItem.
    """

    title: str
    url: str
    source: str
    content: str
    keyword: str
    published_at: datetime
    raw_date: Optional[str] = None


@dataclass
class Topic:
    id: int
    title: str
    description: str = ""
    keywords: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewsItem:
    """Stored article with its summary. Never mutated after insert."""

    topic_id: int
    title: str
    url: str
    source: str
    published_at: datetime
    content: str
    summary: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None
