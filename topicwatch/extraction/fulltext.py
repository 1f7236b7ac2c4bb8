"""Article body fetch + extraction for newly found news items.

Search snippets are short; when enabled the pipeline replaces them with the
page's main text before summarizing. Anything that goes wrong here leaves
the snippet in place.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests
import trafilatura

from topicwatch.ingestion.browser import DEFAULT_USER_AGENT


logger = logging.getLogger(__name__)

MIN_BODY_CHARS = 200


@dataclass(frozen=True)
class FulltextResult:
    text: Optional[str]
    status: str
    error: Optional[str] = None


def _blocked_reason(url: str) -> Optional[str]:
    """Reason not to fetch `url` (non-http, localhost, private address), else None."""
    p = urlparse(url)
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    host = (p.hostname or "").strip().lower()
    if not host:
        return "missing_host"
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return None
    if ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_unspecified or ip.is_reserved:
        return "blocked_private_ip"
    return None


def fetch_and_extract(url: str, *, timeout: int = 20, max_bytes: int = 2_000_000) -> FulltextResult:
    if not url:
        return FulltextResult(text=None, status="error", error="empty_url")
    reason = _blocked_reason(url)
    if reason:
        return FulltextResult(text=None, status="blocked", error=reason)
    try:
        resp = requests.get(
            url,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            timeout=(5, timeout),
            allow_redirects=True,
            stream=True,
        )
        if resp.status_code >= 400:
            return FulltextResult(text=None, status=f"http_{resp.status_code}", error=f"http_{resp.status_code}")
        content = b""
        for chunk in resp.iter_content(chunk_size=64 * 1024):
            content += chunk
            if len(content) > max_bytes:
                return FulltextResult(text=None, status="too_large", error="too_large")
        html = content.decode(resp.encoding or "utf-8", errors="replace")
    except requests.RequestException as e:
        return FulltextResult(text=None, status="error", error=str(e))
    except LookupError:
        # unknown charset label from the server
        html = content.decode("utf-8", errors="replace")

    if not html.strip():
        return FulltextResult(text=None, status="empty", error="empty_html")
    text = trafilatura.extract(html, include_comments=False, include_tables=False)
    if not text:
        return FulltextResult(text=None, status="no_extract", error="no_extract")
    text = re.sub(r"[ \t]+", " ", text).strip()
    if len(text) < MIN_BODY_CHARS:
        return FulltextResult(text=None, status="too_short", error="too_short")
    return FulltextResult(text=text, status="ok")


def article_body(url: str) -> Optional[str]:
    """Main text of `url`, or None when it cannot be fetched or extracted."""
    res = fetch_and_extract(url)
    if res.text is None:
        logger.info(f"Full text unavailable for {url}: {res.status}")
    return res.text
