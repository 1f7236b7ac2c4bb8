"""Headless browser sessions for search-result pages.

One session = one chromium process + one context + one page, opened for a
single surface query and always torn down afterwards.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Page, Route, sync_playwright


logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_VIEWPORT = {"width": 1366, "height": 768}
BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['zh-CN', 'zh', 'en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = { runtime: {} };
"""


def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        route.abort()
    else:
        route.continue_()


@contextmanager
def browser_session(
    *,
    headless: bool = True,
    user_agent: str = DEFAULT_USER_AGENT,
    navigation_timeout: float = 30.0,
) -> Iterator[Page]:
    """Yield a fresh page with automation fingerprints masked."""
    with sync_playwright() as pw:
        browser = pw.chromium.launch(
            headless=headless,
            args=["--disable-blink-features=AutomationControlled", "--no-sandbox"],
        )
        try:
            context = browser.new_context(
                user_agent=user_agent,
                viewport=DEFAULT_VIEWPORT,
                locale="zh-CN",
                java_script_enabled=True,
            )
            try:
                context.add_init_script(STEALTH_SCRIPT)
                context.route("**/*", _block_heavy_resources)
                context.set_default_navigation_timeout(navigation_timeout * 1000)
                page = context.new_page()
                yield page
            finally:
                context.close()
        finally:
            browser.close()
            logger.debug("Browser session closed")
