"""Article summaries.

Summaries come from the completion client when one is configured. Without
one, or on any failure, the summary is the first `fallback_chars`
characters of the content followed by "...".
"""

from __future__ import annotations

import logging
from typing import Optional

from topicwatch.ai.completion import TextCompletion


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You write accurate, objective news summaries."

PROMPT_TEMPLATE = """Summarize the following news content in at most {max_words} words.

{content}

Requirements:
1. Stay objective
2. Keep the key facts
3. Plain, concise language
4. No personal opinions
5. Answer in the language of the content"""

TRUNCATION_MARKER = "..."
# Long pages are cut before prompting; the summary only needs the lead.
MAX_PROMPT_CONTENT_CHARS = 8000


def truncate_summary(content: str, limit: int = 300) -> str:
    return (content or "")[:limit] + TRUNCATION_MARKER


class Summarizer:
    def __init__(self, completion: Optional[TextCompletion] = None, *, fallback_chars: int = 300, max_words: int = 200):
        self.completion = completion
        self.fallback_chars = fallback_chars
        self.max_words = max_words

    def summarize(self, content: str) -> str:
        content = (content or "").strip()
        if not content or self.completion is None:
            return truncate_summary(content, self.fallback_chars)

        prompt = PROMPT_TEMPLATE.format(max_words=self.max_words, content=content[:MAX_PROMPT_CONTENT_CHARS])
        try:
            summary = self.completion.complete(prompt, SYSTEM_PROMPT)
        except Exception as e:
            logger.error(f"Summary generation failed, using truncated content: {e}")
            return truncate_summary(content, self.fallback_chars)
        summary = (summary or "").strip() if isinstance(summary, str) else ""
        if not summary:
            logger.warning("Empty summary from AI, using truncated content")
            return truncate_summary(content, self.fallback_chars)
        return summary
