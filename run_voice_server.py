#!/usr/bin/env python3
"""
Voice Task Queue — Voice Server

Continuously transcribes the microphone, parses recognised sentences
into task commands, and appends them to the queue file.

Architecture:
    Microphone
        ↓
    ffmpeg (raw 16-bit mono PCM on stdout)
        ↓
    vosk recognizer
        ↓
    Command parser
        ↓
    queue.json (you are here)

Usage:
    python run_voice_server.py [--config config.json] [--queue queue.json]

Configuration:
    Optional JSON override file (see config.example.json), also picked
    up from the VOICEQUEUE_CONFIG environment variable.
"""

import argparse
import logging
import os
import signal
import sys
from pathlib import Path

from voicequeue.audio import FFmpegCaptureSource, check_ffmpeg
from voicequeue.config import resolve_config
from voicequeue.errors import VoiceQueueError
from voicequeue.producer import VoiceProducer
from voicequeue.queue_store import TaskQueue
from voicequeue.recognition import RecognitionSession


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Queue task commands spoken into the microphone")
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=os.environ.get("VOICEQUEUE_CONFIG", "config.json"),
        help="JSON config overrides (default: config.json, or $VOICEQUEUE_CONFIG)",
    )
    parser.add_argument("-q", "--queue", type=Path, default=None, help="Queue file (overrides config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log partial transcripts")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    overrides = {"queue_path": str(args.queue)} if args.queue else None
    config = resolve_config(args.config)
    if overrides:
        config = resolve_config(overrides, defaults=config)

    # ── Logging ─────────────────────────────────────────────────────
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger = logging.getLogger("voicequeue")

    logger.info(f"Queue file:   {config.queue_path}")
    logger.info(f"Model:        {config.model_path}")
    logger.info(f"Sample rate:  {config.sample_rate}")
    logger.info(f"Due default:  {config.due_default.value}")

    capture_args = config.capture_args()
    if not check_ffmpeg(capture_args[0]):
        logger.error(f"Capture binary not found: {capture_args[0]}")
        return 1

    # A failed startup must not create the queue file
    try:
        session = RecognitionSession.open(config.model_path, config.sample_rate)
    except VoiceQueueError as e:
        logger.error(f"❌ {e}")
        return 1

    with session:
        queue = TaskQueue(config.queue_path)
        try:
            queue.init()
            source = FFmpegCaptureSource(capture_args, config.chunk_size)
        except VoiceQueueError as e:
            logger.error(f"❌ {e}")
            return 1

        with source:
            producer = VoiceProducer(config, queue, session, source)

            # Graceful shutdown on Ctrl+C or kill
            def shutdown(sig, frame):
                logger.info("Received shutdown signal, stopping...")
                producer.stop()
                sys.exit(0)

            signal.signal(signal.SIGINT, shutdown)
            signal.signal(signal.SIGTERM, shutdown)

            try:
                producer.run()
            except VoiceQueueError as e:
                logger.error(f"❌ {e}")
                return 1

        # Reaching here means the capture stream closed on its own
        logger.error(f"Capture process exited (code {source.returncode}); not restarting")
        return 1


if __name__ == "__main__":
    sys.exit(main())
