import unittest
from datetime import datetime, timedelta, timezone

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from topicwatch.ingestion.article_types import Topic
from topicwatch.ingestion.crawler import SourceCrawler, parse_results
from topicwatch.ingestion.dedup import dedupe
from topicwatch.ingestion.sources import SURFACES_BY_NAME, SearchSurface, select_surfaces
from topicwatch.observability.run_log import RunLog
from tests.fakes import FakePage, FakeSessions


REF = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

SURFACE = SearchSurface(
    name="test",
    label="Test Search",
    search_url="https://search.example.com/s",
    query_param="q",
    container_selector="div.result",
    title_selector="h3 a",
    link_selector="h3 a",
    date_selector="span.date",
    snippet_selector="p.snippet",
)

RESULTS_HTML = """
<html><body>
  <div class="result">
    <h3><a href="https://news.example.com/a?utm_source=search">AI policy  update</a></h3>
    <span class="date">3 分钟前</span>
    <p class="snippet">Lawmakers   agreed on new rules.</p>
  </div>
  <div class="result">
    <h3><a href="/relative/b">Relative link</a></h3>
    <span class="date" datetime="2024-04-30T08:00:00Z">Apr 30</span>
    <p class="snippet">Second snippet.</p>
  </div>
  <div class="result">
    <h3><a href="https://news.example.com/c">No snippet</a></h3>
  </div>
  <div class="result">
    <h3><a>No link</a></h3>
    <p class="snippet">x</p>
  </div>
  <div class="result">
    <h3><a href="https://news.example.com/d"></a></h3>
    <p class="snippet">No title</p>
  </div>
</body></html>
"""


class TestParseResults(unittest.TestCase):
    def test_extracts_complete_results_only(self):
        out = parse_results(RESULTS_HTML, SURFACE, "AI policy", page_url="https://search.example.com/s?q=x", reference=REF)
        self.assertEqual(len(out), 2)
        a, b = out
        self.assertEqual(a.title, "AI policy update")
        self.assertEqual(a.url, "https://news.example.com/a")
        self.assertEqual(a.content, "Lawmakers agreed on new rules.")
        self.assertEqual(a.source, "Test Search")
        self.assertEqual(a.keyword, "AI policy")
        self.assertEqual(a.published_at, REF - timedelta(minutes=3))
        self.assertEqual(b.url, "https://search.example.com/relative/b")
        self.assertEqual(b.published_at, datetime(2024, 4, 30, 8, 0, tzinfo=timezone.utc))

    def test_limit(self):
        out = parse_results(RESULTS_HTML, SURFACE, "k", page_url="https://search.example.com/", reference=REF, limit=1)
        self.assertEqual(len(out), 1)

    def test_missing_date_uses_reference(self):
        html = '<div class="result"><h3><a href="https://x.com/1">T</a></h3><p class="snippet">S</p></div>'
        out = parse_results(html, SURFACE, "k", page_url="https://x.com/", reference=REF)
        self.assertEqual(out[0].published_at, REF)
        self.assertIsNone(out[0].raw_date)


DDG_HTML = """
<div class="result results_links web-result">
  <h2 class="result__title">
    <a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fnews.example.com%2Fai%3Futm_source%3Dddg&amp;rut=abc123">AI rules agreed</a>
  </h2>
  <a class="result__snippet" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fnews.example.com%2Fai&amp;rut=abc123">Lawmakers agreed.</a>
</div>
"""

BAIDU_HTML = """
<div class="result-op c-container" mu="https://news.example.cn/2024/ai.html">
  <h3 class="news-title_1YtI1"><a href="http://www.baidu.com/link?url=Xk2f9aQ0tokenA">人工智能 政策</a></h3>
  <span class="c-color-gray2">2小时前</span>
  <span class="c-font-normal">新规出台。</span>
</div>
<div class="result-op c-container">
  <h3><a href="http://www.baidu.com/link?url=Zz81tokenB">No target attribute</a></h3>
  <span class="c-font-normal">摘要</span>
</div>
"""

BING_HTML = """
<div class="news-card">
  <a class="title" href="https://news.example.com/ai">AI rules agreed</a>
  <div class="snippet">Lawmakers agreed.</div>
</div>
"""


class TestClickThroughLinks(unittest.TestCase):
    def test_duckduckgo_redirect_is_unwrapped(self):
        out = parse_results(
            DDG_HTML, SURFACES_BY_NAME["duckduckgo"], "ai",
            page_url="https://html.duckduckgo.com/html/?q=ai+news", reference=REF,
        )
        self.assertEqual([a.url for a in out], ["https://news.example.com/ai"])

    def test_baidu_uses_container_target(self):
        out = parse_results(
            BAIDU_HTML, SURFACES_BY_NAME["baidu_news"], "ai",
            page_url="https://www.baidu.com/s?word=ai&tn=news", reference=REF,
        )
        self.assertEqual(out[0].url, "https://news.example.cn/2024/ai.html")
        self.assertEqual(out[0].published_at, REF - timedelta(hours=2))
        # falls back to the link when the container carries no target
        self.assertEqual(out[1].url, "http://www.baidu.com/link?url=Zz81tokenB")

    def test_same_article_across_surfaces_dedupes(self):
        bing = parse_results(
            BING_HTML, SURFACES_BY_NAME["bing_news"], "ai",
            page_url="https://www.bing.com/news/search?q=ai", reference=REF,
        )
        ddg = parse_results(
            DDG_HTML, SURFACES_BY_NAME["duckduckgo"], "ai",
            page_url="https://html.duckduckgo.com/html/?q=ai+news", reference=REF,
        )
        unique = dedupe(bing + ddg)
        self.assertEqual(len(unique), 1)
        self.assertEqual(unique[0].source, "Bing News")


class TestSurfaces(unittest.TestCase):
    def test_build_url_with_suffix(self):
        url = SURFACES_BY_NAME["duckduckgo"].build_url("AI policy")
        self.assertEqual(url, "https://html.duckduckgo.com/html/?q=AI+policy+news")

    def test_build_url_with_extra_params(self):
        url = SURFACES_BY_NAME["baidu_news"].build_url("人工智能")
        self.assertTrue(url.startswith("https://www.baidu.com/s?word=%E4%BA%BA"))
        self.assertIn("tn=news", url)

    def test_select_surfaces(self):
        self.assertEqual(len(select_surfaces(None)), len(SURFACES_BY_NAME))
        self.assertEqual([s.name for s in select_surfaces(["duckduckgo", "bing_news"])], ["bing_news", "duckduckgo"])
        with self.assertRaises(ValueError):
            select_surfaces(["altavista"])


class TestSourceCrawler(unittest.TestCase):
    def setUp(self):
        self.run_log = RunLog()
        self.topic = Topic(id=5, title="AI policy", keywords=["AI policy"])

    def _crawler(self, sessions, surfaces):
        return SourceCrawler(self.run_log, surfaces=surfaces, session_factory=sessions)

    def test_aggregates_across_surfaces(self):
        second = SearchSurface(**{**SURFACE.__dict__, "name": "test2", "label": "Other Search"})
        sessions = FakeSessions([FakePage(RESULTS_HTML), FakePage(RESULTS_HTML)])
        out = self._crawler(sessions, [SURFACE, second]).fetch(self.topic, "AI policy")
        self.assertEqual(len(out), 4)
        self.assertEqual({a.source for a in out}, {"Test Search", "Other Search"})
        self.assertEqual(sessions.closed, 2)

    def test_selector_timeout_is_a_soft_failure(self):
        sessions = FakeSessions([
            FakePage(wait_error=PlaywrightTimeoutError("Timeout 10000ms exceeded")),
            FakePage(RESULTS_HTML),
        ])
        second = SearchSurface(**{**SURFACE.__dict__, "name": "test2"})
        out = self._crawler(sessions, [SURFACE, second]).fetch(self.topic, "AI policy")
        self.assertEqual(len(out), 2)
        self.assertEqual(sessions.closed, 2)
        levels = [e.level for e in self.run_log.get_topic_logs(5)]
        self.assertIn("warn", levels)

    def test_navigation_error_is_logged_and_session_released(self):
        sessions = FakeSessions([FakePage(goto_error=RuntimeError("net::ERR_CONNECTION_RESET"))])
        out = self._crawler(sessions, [SURFACE]).fetch(self.topic, "AI policy")
        self.assertEqual(out, [])
        self.assertEqual(sessions.closed, 1)
        messages = [e.message for e in self.run_log.get_topic_logs(5) if e.level == "error"]
        self.assertTrue(any("ERR_CONNECTION_RESET" in m for m in messages))

    def test_navigates_to_surface_url(self):
        page = FakePage(RESULTS_HTML)
        self._crawler(FakeSessions([page]), [SURFACE]).fetch(self.topic, "AI policy")
        self.assertEqual(page.visited, ["https://search.example.com/s?q=AI+policy"])


if __name__ == "__main__":
    unittest.main()
