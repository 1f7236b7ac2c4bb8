"""Search surfaces the crawler queries.

Each surface is pure data: where to send the keyword and which CSS selectors
pick the fields out of the rendered result page. The crawler has a single
extraction routine for all of them.

Selectors track the live markup of third-party sites and will drift; check
them against the current pages when a surface starts returning nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlencode


@dataclass(frozen=True)
class SearchSurface:
    name: str
    label: str
    search_url: str
    query_param: str
    container_selector: str
    title_selector: str
    link_selector: str
    date_selector: Optional[str] = None
    snippet_selector: Optional[str] = None
    keyword_suffix: str = ""
    extra_params: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    # click-through links: query param carrying the real target, or an
    # attribute on the result container that holds it
    redirect_param: Optional[str] = None
    target_attr: Optional[str] = None

    def build_url(self, keyword: str) -> str:
        query = keyword.strip()
        if self.keyword_suffix:
            query = f"{query} {self.keyword_suffix}"
        params = [(self.query_param, query)] + list(self.extra_params)
        return f"{self.search_url}?{urlencode(params)}"


DEFAULT_SURFACES: List[SearchSurface] = [
    SearchSurface(
        name="bing_news",
        label="Bing News",
        search_url="https://www.bing.com/news/search",
        query_param="q",
        extra_params=(("qft", 'sortbydate="1"'), ("form", "YFNR")),
        container_selector="div.news-card",
        title_selector="a.title",
        link_selector="a.title",
        date_selector="div.source span[aria-label]",
        snippet_selector="div.snippet",
    ),
    SearchSurface(
        name="baidu_news",
        label="Baidu News",
        search_url="https://www.baidu.com/s",
        query_param="word",
        extra_params=(("tn", "news"), ("rtt", "1")),
        container_selector="div.result-op",
        title_selector="h3 a",
        link_selector="h3 a",
        date_selector="span.c-color-gray2",
        snippet_selector="span.c-font-normal",
        target_attr="mu",
    ),
    SearchSurface(
        name="duckduckgo",
        label="DuckDuckGo",
        search_url="https://html.duckduckgo.com/html/",
        query_param="q",
        keyword_suffix="news",
        container_selector="div.result",
        title_selector="a.result__a",
        link_selector="a.result__a",
        date_selector="span.result__timestamp",
        snippet_selector="a.result__snippet",
        redirect_param="uddg",
    ),
]

SURFACES_BY_NAME: Dict[str, SearchSurface] = {s.name: s for s in DEFAULT_SURFACES}


def select_surfaces(names: Optional[Iterable[str]] = None) -> List[SearchSurface]:
    """Registry subset in registry order; empty/None means all surfaces."""
    wanted = [n.strip() for n in (names or []) if n and n.strip()]
    if not wanted:
        return list(DEFAULT_SURFACES)
    unknown = [n for n in wanted if n not in SURFACES_BY_NAME]
    if unknown:
        raise ValueError(f"Unknown search surface(s): {', '.join(unknown)}")
    return [s for s in DEFAULT_SURFACES if s.name in wanted]
