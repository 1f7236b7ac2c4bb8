"""In-memory crawl logs.

Two bounded ring buffers of (timestamp, level, message) entries:

- a process-wide buffer, fed by a `logging.Handler` attached to the
  `topicwatch` logger, so every module's log output shows up in it
- one buffer per topic, written through `RunLog.topic(...)` and cleared at
  the start of every crawl of that topic

The RunLog object is created once per process and passed to whatever needs
it; nothing here is module-global.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional


logger = logging.getLogger(__name__)

DEFAULT_MAX_PROCESS_LOGS = 1000
DEFAULT_MAX_TOPIC_LOGS = 100


def level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    return "info"


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    level: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _entry(level: str, message: Any) -> LogEntry:
    return LogEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        level=level,
        message=message if isinstance(message, str) else str(message),
    )


class RunLog:
    def __init__(self, *, max_process_logs: int = DEFAULT_MAX_PROCESS_LOGS, max_topic_logs: int = DEFAULT_MAX_TOPIC_LOGS):
        self.max_process_logs = max_process_logs
        self.max_topic_logs = max_topic_logs
        self._process: Deque[LogEntry] = deque(maxlen=max_process_logs)
        self._topics: Dict[Any, Deque[LogEntry]] = {}
        self._lock = threading.Lock()
        self.handler = ProcessLogHandler(self)

    # -----------------------------
    # Process-wide buffer
    # -----------------------------
    def append_process(self, level: str, message: Any) -> None:
        entry = _entry(level, message)
        with self._lock:
            self._process.append(entry)

    def get_process_logs(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            entries = list(self._process)
        if limit is not None:
            if limit <= 0:
                return []
            entries = entries[-limit:]
        return entries

    def clear_process_logs(self) -> None:
        with self._lock:
            self._process.clear()

    # -----------------------------
    # Per-topic buffers
    # -----------------------------
    def append_topic(self, topic_id: Any, level: str, message: Any) -> None:
        if topic_id is None or topic_id == "":
            logger.error("Cannot add topic log entry: missing topic id")
            return
        entry = _entry(level, message)
        with self._lock:
            buf = self._topics.get(topic_id)
            if buf is None:
                buf = deque(maxlen=self.max_topic_logs)
                self._topics[topic_id] = buf
            buf.append(entry)

    def get_topic_logs(self, topic_id: Any) -> List[LogEntry]:
        if topic_id is None or topic_id == "":
            logger.error("Cannot read topic logs: missing topic id")
            return []
        with self._lock:
            return list(self._topics.get(topic_id, ()))

    def clear_topic_logs(self, topic_id: Any) -> None:
        if topic_id is None or topic_id == "":
            logger.error("Cannot clear topic logs: missing topic id")
            return
        with self._lock:
            self._topics.pop(topic_id, None)

    def topic(self, topic_id: Any, module_logger: Optional[logging.Logger] = None) -> "TopicLog":
        return TopicLog(self, topic_id, module_logger or logger)


class TopicLog:
    """Writes to one topic's buffer and to a regular logger at the same time."""

    def __init__(self, run_log: RunLog, topic_id: Any, module_logger: logging.Logger):
        self.run_log = run_log
        self.topic_id = topic_id
        self.logger = module_logger

    def _log(self, levelno: int, message: str) -> None:
        self.run_log.append_topic(self.topic_id, level_name(levelno), message)
        self.logger.log(levelno, message)

    def info(self, message: str) -> None:
        self._log(logging.INFO, message)

    def warning(self, message: str) -> None:
        self._log(logging.WARNING, message)

    def error(self, message: str) -> None:
        self._log(logging.ERROR, message)


class ProcessLogHandler(logging.Handler):
    """Copies log records into the RunLog process buffer."""

    def __init__(self, run_log: RunLog, level: int = logging.INFO):
        super().__init__(level=level)
        self.run_log = run_log

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.run_log.append_process(level_name(record.levelno), record.getMessage())
        except Exception:
            self.handleError(record)
