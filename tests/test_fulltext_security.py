import unittest
from unittest import mock

from topicwatch.extraction.fulltext import article_body, fetch_and_extract


class TestFulltextSecurity(unittest.TestCase):
    def test_blocks_localhost(self):
        self.assertEqual(fetch_and_extract("http://localhost:1234/").status, "blocked")

    def test_blocks_private_ip(self):
        self.assertEqual(fetch_and_extract("http://127.0.0.1:1234/").status, "blocked")
        self.assertEqual(fetch_and_extract("http://192.168.1.10/a").status, "blocked")

    def test_blocks_non_http_scheme(self):
        self.assertEqual(fetch_and_extract("file:///etc/passwd").status, "blocked")

    def test_article_body_none_when_blocked(self):
        self.assertIsNone(article_body("http://10.0.0.1/"))


class TestFulltextExtraction(unittest.TestCase):
    def _response(self, html, status=200):
        resp = mock.Mock()
        resp.status_code = status
        resp.encoding = "utf-8"
        resp.iter_content.return_value = [html.encode("utf-8")]
        return resp

    @mock.patch("topicwatch.extraction.fulltext.trafilatura.extract")
    @mock.patch("topicwatch.extraction.fulltext.requests.get")
    def test_ok(self, get, extract):
        get.return_value = self._response("<html><body><article>x</article></body></html>")
        extract.return_value = "Body text. " * 40
        res = fetch_and_extract("https://news.example.com/a")
        self.assertEqual(res.status, "ok")
        self.assertTrue(res.text.startswith("Body text."))

    @mock.patch("topicwatch.extraction.fulltext.requests.get")
    def test_http_error(self, get):
        get.return_value = self._response("", status=403)
        self.assertEqual(fetch_and_extract("https://news.example.com/a").status, "http_403")

    @mock.patch("topicwatch.extraction.fulltext.trafilatura.extract")
    @mock.patch("topicwatch.extraction.fulltext.requests.get")
    def test_short_extract_rejected(self, get, extract):
        get.return_value = self._response("<html><body>hi</body></html>")
        extract.return_value = "Subscribe now"
        self.assertEqual(fetch_and_extract("https://news.example.com/a").status, "too_short")


if __name__ == "__main__":
    unittest.main()
