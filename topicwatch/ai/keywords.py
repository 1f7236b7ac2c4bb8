"""Search keyword generation for topics.

With a completion client we ask for a short list of search terms and parse
whatever comes back (JSON list first, then line/comma splitting). Without
one, or when the call or the parse fails, keywords are derived from the
topic text. `generate` always returns at least one keyword.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Iterable, List, Optional

from topicwatch.ai.completion import TextCompletion
from topicwatch.ingestion.article_types import Topic


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You generate precise, relevant news search keywords."

PROMPT_TEMPLATE = """Generate 3-5 search keywords for the news topic below.

Topic: {title}
Description: {description}

Requirements:
1. Each keyword is short (at most a few words)
2. Highly relevant to the topic
3. Suitable for a news search engine
4. Use the language of the topic

Return ONLY a JSON array of strings, e.g. ["keyword one", "keyword two"]."""

STOPWORDS = {
    "the", "and", "or", "of", "to", "in", "on", "for", "with", "by", "at", "as", "is", "are",
    "was", "be", "this", "that", "it", "its", "from", "about", "into", "an",
}

_SPLIT_RESPONSE = re.compile(r"[\n,，、;；]+")
_LIST_MARKER = re.compile(r"^\s*(?:[-*•]+|\d+[.)、]|\(\d+\))\s*")
_TOKEN_SPLIT = re.compile(r"[\W_]+", re.UNICODE)


def _strip_code_fence(text: str) -> str:
    t = text.strip()
    if t.startswith("```"):
        t = re.sub(r"^```[a-zA-Z]*\s*", "", t)
        t = re.sub(r"\s*```$", "", t)
    return t.strip()


def _unique(items: Iterable[str], limit: int) -> List[str]:
    seen = set()
    out: List[str] = []
    for it in items:
        key = it.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(it)
        if len(out) >= limit:
            break
    return out


def parse_keywords(response: str, *, max_keywords: int = 10, max_chars: int = 40) -> List[str]:
    """Parse a model response into keywords (possibly empty)."""
    text = _strip_code_fence(str(response or ""))
    if not text:
        return []

    candidates: List[str] = []
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        data = data.get("keywords")
    if isinstance(data, list):
        candidates = [str(x) for x in data if isinstance(x, (str, int, float))]
    else:
        candidates = _SPLIT_RESPONSE.split(text)

    cleaned = []
    for c in candidates:
        k = _LIST_MARKER.sub("", c).strip().strip("\"'“”‘’[]").strip()
        if k and len(k) <= max_chars:
            cleaned.append(k)
    return _unique(cleaned, max_keywords)


def fallback_keywords(topic: Topic, *, max_keywords: int = 10) -> List[str]:
    """Topic title first, then distinct description tokens (2+ chars)."""
    title = (topic.title or "").strip()
    tokens = [
        t for t in _TOKEN_SPLIT.split(topic.description or "")
        if len(t) >= 2 and t.lower() not in STOPWORDS and not t.isdigit()
    ]
    out = _unique(([title] if title else []) + tokens, max_keywords)
    if not out:
        # Title was blank and description had nothing usable
        out = [title or "news"]
    return out


class KeywordGenerator:
    def __init__(self, completion: Optional[TextCompletion] = None, *, max_keywords: int = 10):
        self.completion = completion
        self.max_keywords = max_keywords

    def generate(self, topic: Topic) -> List[str]:
        if self.completion is None:
            logger.warning(f"No AI capability configured; deriving keywords for '{topic.title}' from topic text")
            return fallback_keywords(topic, max_keywords=self.max_keywords)

        prompt = PROMPT_TEMPLATE.format(title=topic.title, description=topic.description or "")
        try:
            response = self.completion.complete(prompt, SYSTEM_PROMPT)
        except Exception as e:
            logger.error(f"Keyword generation failed for '{topic.title}': {e}")
            return fallback_keywords(topic, max_keywords=self.max_keywords)

        keywords = parse_keywords(response, max_keywords=self.max_keywords)
        if not keywords:
            logger.warning(f"Could not parse keywords for '{topic.title}' from response: {str(response)[:200]!r}")
            return fallback_keywords(topic, max_keywords=self.max_keywords)
        logger.info(f"Generated keywords for '{topic.title}': {', '.join(keywords)}")
        return keywords
