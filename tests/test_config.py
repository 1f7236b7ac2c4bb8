import os
import unittest
from unittest import mock

from topicwatch.config import Config


class TestConfig(unittest.TestCase):
    def _load(self, **env):
        with mock.patch.dict(os.environ, env, clear=True), mock.patch("topicwatch.config.load_dotenv"):
            return Config.from_env()

    def test_defaults(self):
        config = self._load()
        self.assertFalse(config.ai_enabled)
        self.assertEqual(config.schedule_time, "09:00")
        self.assertEqual(config.retention_days, 7)
        self.assertEqual(config.max_topic_logs, 100)
        self.assertEqual(config.summary_fallback_chars, 300)
        self.assertEqual(config.surfaces, [])

    def test_env_overrides(self):
        config = self._load(
            AI_API_KEY="sk-test-1234",
            AI_BASE_URL="https://dashscope.aliyuncs.com/compatible-mode/v1",
            CRAWL_SURFACES="bing_news, duckduckgo",
            CRAWL_HEADLESS="false",
            CRAWL_SCHEDULE_TIME="06:30",
        )
        self.assertTrue(config.ai_enabled)
        self.assertEqual(config.surfaces, ["bing_news", "duckduckgo"])
        self.assertFalse(config.headless)
        self.assertEqual(config.schedule_time, "06:30")

    def test_validation_collects_errors(self):
        with self.assertRaises(ValueError) as cm:
            self._load(CRAWL_SCHEDULE_TIME="9am", NEWS_RETENTION_DAYS="0", CRAWL_SURFACES="altavista")
        msg = str(cm.exception)
        self.assertIn("CRAWL_SCHEDULE_TIME", msg)
        self.assertIn("NEWS_RETENTION_DAYS", msg)
        self.assertIn("altavista", msg)


if __name__ == "__main__":
    unittest.main()
