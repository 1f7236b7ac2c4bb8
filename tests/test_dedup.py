import unittest

from topicwatch.ingestion.dedup import dedupe
from tests.fakes import make_article


class TestDedupe(unittest.TestCase):
    def test_first_occurrence_wins_across_keywords(self):
        first = make_article("https://a.com/1", title="from kw1", keyword="kw1")
        dup = make_article("https://a.com/1", title="from kw2", keyword="kw2")
        other = make_article("https://a.com/2", keyword="kw2")
        out = dedupe([first, dup, other])
        self.assertEqual([a.url for a in out], ["https://a.com/1", "https://a.com/2"])
        self.assertIs(out[0], first)

    def test_empty(self):
        self.assertEqual(dedupe([]), [])


if __name__ == "__main__":
    unittest.main()
