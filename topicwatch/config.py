"""Runtime configuration loaded from the environment (and .env)."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from topicwatch.ingestion.sources import SURFACES_BY_NAME


logger = logging.getLogger(__name__)

DEFAULT_PG_DSN = "dbname=topicwatch user=topicwatch password=topicwatch host=localhost port=5432"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> List[str]:
    return [p.strip() for p in os.getenv(name, "").split(",") if p.strip()]


@dataclass
class Config:
    pg_dsn: str = DEFAULT_PG_DSN

    # AI capability (empty key = deterministic fallbacks only)
    ai_api_key: str = ""
    ai_base_url: str = ""
    ai_model: str = "gpt-4o-mini"
    ai_timeout: float = 30.0

    # Schedule / retention
    schedule_time: str = "09:00"
    retention_days: int = 7

    # Logging
    log_dir: str = "logs"
    max_process_logs: int = 1000
    max_topic_logs: int = 100

    # Crawling
    navigation_timeout: float = 30.0
    selector_timeout: float = 10.0
    max_results_per_surface: int = 20
    headless: bool = True
    fetch_fulltext: bool = True
    surfaces: List[str] = field(default_factory=list)

    # Keywords / summaries
    max_keywords: int = 10
    summary_fallback_chars: int = 300

    @property
    def ai_enabled(self) -> bool:
        return bool(self.ai_api_key.strip())

    @classmethod
    def from_env(cls) -> "Config":
        """Load and validate configuration from environment variables"""
        load_dotenv()
        config = cls(
            pg_dsn=os.getenv("PG_DSN", DEFAULT_PG_DSN),
            ai_api_key=os.getenv("AI_API_KEY", ""),
            ai_base_url=os.getenv("AI_BASE_URL", ""),
            ai_model=os.getenv("AI_MODEL", "gpt-4o-mini"),
            ai_timeout=float(os.getenv("AI_TIMEOUT", "30")),
            schedule_time=os.getenv("CRAWL_SCHEDULE_TIME", "09:00").strip(),
            retention_days=int(os.getenv("NEWS_RETENTION_DAYS", "7")),
            log_dir=os.getenv("LOG_DIR", "logs"),
            max_process_logs=int(os.getenv("MAX_PROCESS_LOGS", "1000")),
            max_topic_logs=int(os.getenv("MAX_TOPIC_LOGS", "100")),
            navigation_timeout=float(os.getenv("CRAWL_NAVIGATION_TIMEOUT", "30")),
            selector_timeout=float(os.getenv("CRAWL_SELECTOR_TIMEOUT", "10")),
            max_results_per_surface=int(os.getenv("CRAWL_MAX_RESULTS_PER_SURFACE", "20")),
            headless=_env_bool("CRAWL_HEADLESS", "true"),
            fetch_fulltext=_env_bool("CRAWL_FETCH_FULLTEXT", "true"),
            surfaces=_env_list("CRAWL_SURFACES"),
            max_keywords=int(os.getenv("MAX_KEYWORDS", "10")),
            summary_fallback_chars=int(os.getenv("SUMMARY_FALLBACK_CHARS", "300")),
        )
        config._validate()
        return config

    def _validate(self) -> None:
        errors = []

        if not self.pg_dsn.strip():
            errors.append("PG_DSN is required")

        m = re.fullmatch(r"(\d{2}):(\d{2})", self.schedule_time)
        if not m or int(m.group(1)) > 23 or int(m.group(2)) > 59:
            errors.append("CRAWL_SCHEDULE_TIME must be HH:MM (24h)")

        if self.retention_days < 1:
            errors.append("NEWS_RETENTION_DAYS must be at least 1")
        if self.max_process_logs < 1 or self.max_topic_logs < 1:
            errors.append("MAX_PROCESS_LOGS and MAX_TOPIC_LOGS must be at least 1")
        for name, value in (
            ("AI_TIMEOUT", self.ai_timeout),
            ("CRAWL_NAVIGATION_TIMEOUT", self.navigation_timeout),
            ("CRAWL_SELECTOR_TIMEOUT", self.selector_timeout),
        ):
            if value < 1 or value > 300:
                errors.append(f"{name} should be between 1 and 300 seconds")
        if self.max_results_per_surface < 1:
            errors.append("CRAWL_MAX_RESULTS_PER_SURFACE must be at least 1")
        if not 1 <= self.max_keywords <= 10:
            errors.append("MAX_KEYWORDS should be between 1 and 10")
        if self.summary_fallback_chars < 1:
            errors.append("SUMMARY_FALLBACK_CHARS must be at least 1")

        unknown = [s for s in self.surfaces if s not in SURFACES_BY_NAME]
        if unknown:
            errors.append(f"Unknown CRAWL_SURFACES: {', '.join(unknown)} (known: {', '.join(SURFACES_BY_NAME)})")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
            raise ValueError(error_msg)

        logger.info(f"Configuration validated (AI {'enabled' if self.ai_enabled else 'disabled'})")
