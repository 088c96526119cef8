# worker.py
"""RQ worker for the waveform regeneration queue."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from redis import Redis
from rq import Queue, Worker
from rq.logutils import setup_loghandlers

from app.core.config import settings


def queue_names(raw: str) -> List[str]:
    return [q.strip() for q in str(raw).split(",") if q.strip()]


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Waveform regeneration worker (RQ)")
    p.add_argument("--queues", default=settings.RQ_QUEUE, help="Comma-separated queue names")
    p.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    p.add_argument("--burst", action="store_true", help="Exit when the queues are empty")
    return p.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    setup_loghandlers(level=args.log_level)

    names = queue_names(args.queues)
    if not names:
        logging.error("No queues specified")
        return 1

    # rq installs its own SIGINT/SIGTERM handling (warm shutdown)
    redis_conn = Redis.from_url(settings.REDIS_URL)
    worker = Worker([Queue(name, connection=redis_conn) for name in names], connection=redis_conn)
    logging.info("Waveform worker started. queues=%s burst=%s", names, args.burst)
    worker.work(burst=args.burst)
    return 0


if __name__ == "__main__":
    sys.exit(main())
