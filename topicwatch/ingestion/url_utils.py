"""URL helpers for crawl results and dedup."""

from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse


DEFAULT_STRIP_QUERY_PARAMS = {
    # tracking
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "utm_id",
    "utm_name",
    "utm_reader",
    "utm_referrer",
    "gclid",
    "fbclid",
    "mc_cid",
    "mc_eid",
    "ref_src",
    "ref_url",
}


def canonicalize_url(url: str, *, strip_params: Optional[Iterable[str]] = None) -> str:
    """Canonicalize a result URL.

    - Lowercase scheme + hostname
    - Remove fragments
    - Strip tracking query parameters, keep the rest in original order
    """
    if not url:
        return ""
    strip = set(strip_params) if strip_params is not None else DEFAULT_STRIP_QUERY_PARAMS
    p = urlparse(url.strip())
    scheme = (p.scheme or "https").lower()
    netloc = (p.netloc or "").lower()
    path = p.path or "/"

    kept = [(k, v) for k, v in parse_qsl(p.query, keep_blank_values=True) if k.lower() not in strip]
    query = urlencode(kept, doseq=True)
    return urlunparse((scheme, netloc, path, "", query, ""))


def unwrap_redirect(url: str, redirect_param: Optional[str]) -> str:
    """Return the target of a search engine click-through link.

    `https://duckduckgo.com/l/?uddg=<encoded target>&rut=...` with
    redirect_param="uddg" yields the decoded target. Links without the
    parameter come back unchanged.
    """
    if not redirect_param:
        return url
    for k, v in parse_qsl(urlparse(url).query, keep_blank_values=True):
        if k == redirect_param and v.strip():
            return v.strip()
    return url


def resolve_result_url(href: Optional[str], page_url: str, *, redirect_param: Optional[str] = None) -> Optional[str]:
    """Turn an href scraped from a result page into an absolute canonical URL.

    Returns None for empty, javascript: or otherwise non-http links.
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith(("javascript:", "mailto:", "#")):
        return None
    absolute = urljoin(page_url, unwrap_redirect(urljoin(page_url, href), redirect_param))
    if urlparse(absolute).scheme not in ("http", "https"):
        return None
    return canonicalize_url(absolute)
