"""Logging setup and the on-disk log sinks.

Records go to stdout, to `combined.log` and (errors only) to `error.log`.
Both files hold one JSON object per line so operational tooling can read
them back with `tail_log_file`.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from topicwatch.observability.run_log import RunLog, level_name


COMBINED_LOG = "combined.log"
ERROR_LOG = "error.log"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGER = "topicwatch"


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": level_name(record.levelno),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(log_dir: str, run_log: Optional[RunLog] = None, *, level: int = logging.INFO) -> None:
    """Install console + JSON file handlers on the root logger.

    When `run_log` is given its process handler is attached to the package
    logger, so only `topicwatch.*` output lands in the in-memory buffer.
    """
    os.makedirs(log_dir, exist_ok=True)

    combined = logging.FileHandler(os.path.join(log_dir, COMBINED_LOG), encoding="utf-8")
    combined.setFormatter(JsonLineFormatter())
    errors = logging.FileHandler(os.path.join(log_dir, ERROR_LOG), encoding="utf-8")
    errors.setLevel(logging.ERROR)
    errors.setFormatter(JsonLineFormatter())
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logging.basicConfig(level=level, handlers=[console, combined, errors], force=True)

    if run_log is not None:
        pkg = logging.getLogger(PACKAGE_LOGGER)
        if run_log.handler not in pkg.handlers:
            pkg.addHandler(run_log.handler)


def tail_log_file(path: str, lines: int = 100) -> List[Dict[str, Any]]:
    """Return the last `lines` records of a JSON-lines log file.

    Lines that are not valid JSON are returned as bare messages stamped with
    the current time. A missing file reads as empty.
    """
    if lines <= 0 or not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        raw = [ln.rstrip("\n") for ln in f if ln.strip()]
    out: List[Dict[str, Any]] = []
    for line in raw[-lines:]:
        try:
            rec = json.loads(line)
        except json.JSONDecodeError:
            rec = None
        if not isinstance(rec, dict):
            rec = {"message": line, "timestamp": datetime.now(timezone.utc).isoformat()}
        out.append(rec)
    return out


def clear_log_files(log_dir: str, run_log: Optional[RunLog] = None) -> int:
    """Truncate every *.log file in `log_dir`; also empties the process buffer."""
    cleared = 0
    if os.path.isdir(log_dir):
        for name in sorted(os.listdir(log_dir)):
            if not name.endswith(".log"):
                continue
            # Truncate in place so open FileHandlers keep a valid target.
            with open(os.path.join(log_dir, name), "w", encoding="utf-8"):
                pass
            cleared += 1
    if run_log is not None:
        run_log.clear_process_logs()
    return cleared
