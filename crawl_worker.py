#!/usr/bin/env python3
"""Topic news crawl worker.

Commands:
- sweep              crawl every topic once
- serve              run the daily schedule until SIGINT/SIGTERM
- crawl TOPIC_ID     crawl a single topic now
- add-topic TITLE    create a topic, generate its keywords, crawl it
- logs               print the tail of combined.log
- purge              delete news items past the retention window
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading

from topicwatch.app import build_pipeline
from topicwatch.config import Config
from topicwatch.observability.log_files import COMBINED_LOG, tail_log_file
from topicwatch.storage.errors import ConflictError


logger = logging.getLogger("topicwatch.worker")


def _sweep(pipeline, args) -> int:
    report = pipeline.scheduler.run_sweep()
    if report is None:
        return 1
    print(f"[sweep] topics={report.topics} ok={report.succeeded} failed={report.failed} purged={report.purged}")
    return 0 if report.failed == 0 else 2


def _serve(pipeline, args) -> int:
    stop = threading.Event()

    def _handle(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)

    pipeline.scheduler.start()
    if args.run_now:
        pipeline.scheduler.run_sweep()
    pipeline.scheduler.run_forever(stop)
    return 0


def _crawl(pipeline, args) -> int:
    topic = pipeline.repo.get_topic(args.topic_id)
    if topic is None:
        print(f"Topic {args.topic_id} not found", file=sys.stderr)
        return 1
    report = pipeline.orchestrator.run(topic)
    for entry in pipeline.run_log.get_topic_logs(topic.id):
        print(f"{entry.timestamp} [{entry.level}] {entry.message}")
    print(f"[crawl] topic={topic.id} new={report.inserted} skipped={report.skipped} failed={report.failed}")
    return 0


def _add_topic(pipeline, args) -> int:
    try:
        topic = pipeline.repo.create_topic(args.title, args.description)
    except ConflictError as e:
        print(str(e), file=sys.stderr)
        return 1
    keywords = pipeline.keyword_generator.generate(topic)
    pipeline.repo.update_topic_keywords(topic.id, keywords)
    topic.keywords = keywords
    print(f"[add-topic] id={topic.id} keywords={', '.join(keywords)}")
    # Same trigger the API uses on topic creation; wait so the process does not exit under it.
    pipeline.orchestrator.run_now(topic).join()
    return 0


def _logs(pipeline, args) -> int:
    for rec in tail_log_file(os.path.join(pipeline.config.log_dir, COMBINED_LOG), args.lines):
        print(json.dumps(rec, ensure_ascii=False))
    return 0


def _purge(pipeline, args) -> int:
    deleted = pipeline.repo.purge_expired(pipeline.config.retention_days)
    print(f"[purge] deleted={deleted}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Topic news crawl worker")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("sweep", help="crawl every topic once").set_defaults(func=_sweep)

    serve = sub.add_parser("serve", help="run the daily schedule")
    serve.add_argument("--run-now", action="store_true", help="also run one sweep immediately")
    serve.set_defaults(func=_serve)

    crawl = sub.add_parser("crawl", help="crawl one topic")
    crawl.add_argument("topic_id", type=int)
    crawl.set_defaults(func=_crawl)

    add = sub.add_parser("add-topic", help="create a topic and crawl it")
    add.add_argument("title")
    add.add_argument("--description", default="")
    add.set_defaults(func=_add_topic)

    logs = sub.add_parser("logs", help="tail combined.log")
    logs.add_argument("--lines", type=int, default=100)
    logs.set_defaults(func=_logs)

    sub.add_parser("purge", help="delete expired news items").set_defaults(func=_purge)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Configuration error:\n{e}", file=sys.stderr)
        return 1
    pipeline = build_pipeline(config)
    try:
        return args.func(pipeline, args)
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
