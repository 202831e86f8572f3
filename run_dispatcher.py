#!/usr/bin/env python3
"""
Voice Task Queue — Dispatcher

Reads the queue file and creates one monday.com item per command.
Items created successfully are removed from the queue; failures stay
for the next run.

Usage:
    python run_dispatcher.py [--config config.json] [--dry-run]

Environment:
    MONDAY_API_TOKEN, DEFAULT_BOARD_ID (or in a .env file)
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from voicequeue.config import load_credentials, resolve_config
from voicequeue.dispatcher import Dispatcher, build_column_values
from voicequeue.errors import VoiceQueueError
from voicequeue.monday import MondayClient
from voicequeue.queue_store import TaskQueue


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Send queued task commands to monday.com",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --queue ./queue.json
  %(prog)s --dry-run

Environment:
  Set MONDAY_API_TOKEN and DEFAULT_BOARD_ID, or put them in .env
        """,
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=os.environ.get("VOICEQUEUE_CONFIG", "config.json"),
        help="JSON config overrides (default: config.json, or $VOICEQUEUE_CONFIG)",
    )
    parser.add_argument("-q", "--queue", type=Path, default=None, help="Queue file (overrides config)")
    parser.add_argument("--env-file", default=".env", help="dotenv file with API credentials")
    parser.add_argument("--dry-run", action="store_true", help="List queued commands without sending them")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = resolve_config(args.config)
    if args.queue:
        config = resolve_config({"queue_path": str(args.queue)}, defaults=config)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger = logging.getLogger("voicequeue")

    queue = TaskQueue(config.queue_path)

    if args.dry_run:
        try:
            commands = queue.read_all()
        except VoiceQueueError as e:
            logger.error(f"❌ {e}")
            return 1
        for i, command in enumerate(commands, 1):
            logger.info(f"[{i}] {command.kind} → {command.task!r} {build_column_values(command, config)}")
        logger.info(f"{len(commands)} command(s) queued (dry run, nothing sent)")
        return 0

    try:
        credentials = load_credentials(args.env_file)
        with MondayClient(
            credentials,
            api_url=config.api_url,
            api_version=config.api_version,
            timeout=config.request_timeout,
        ) as client:
            report = Dispatcher(queue, client, config, credentials).run()
    except VoiceQueueError as e:
        logger.error(f"❌ {e}")
        return 1

    return 0 if not report.failed else 2


if __name__ == "__main__":
    sys.exit(main())
