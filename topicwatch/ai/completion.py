"""Text-completion capability used for keywords and summaries.

Callers only see `complete(prompt, system=None) -> str`. Any
OpenAI-compatible endpoint works (OpenAI, OpenRouter, DashScope...) via
`AI_BASE_URL`. Parsing and fallbacks belong to the callers.
"""

from __future__ import annotations

import logging
from typing import Optional

import openai


logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """The provider answered but the answer carried no usable text."""


class TextCompletion:
    name: str = "base"

    def complete(self, prompt: str, system: Optional[str] = None) -> str:
        raise NotImplementedError


class OpenAICompletion(TextCompletion):
    name = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        temperature: float = 0.3,
        max_tokens: int = 800,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        # max_retries=0: a failed call is a soft failure, the next run retries
        self.client = openai.OpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout, max_retries=0)

    def complete(self, prompt: str, system: Optional[str] = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices and choices[0].message else None
        if not content or not content.strip():
            raise CompletionError(f"{self.model} returned an empty completion")
        return content.strip()


def build_completion(config) -> Optional[TextCompletion]:
    """Completion client for `config`, or None when no API key is set."""
    if not config.ai_enabled:
        logger.warning("AI_API_KEY not set; keywords and summaries use deterministic fallbacks")
        return None
    masked = f"...{config.ai_api_key[-4:]}" if len(config.ai_api_key) > 4 else "***"
    logger.info(f"Using AI model {config.ai_model} (key {masked})")
    return OpenAICompletion(
        config.ai_api_key,
        model=config.ai_model,
        base_url=config.ai_base_url or None,
        timeout=config.ai_timeout,
    )
