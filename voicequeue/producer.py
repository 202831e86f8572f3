"""
Voice producer loop.

Pulls audio from the capture source, feeds it to the recognition session
and appends every recognized command to the queue. Unrecognized sentences
are reported and dropped; speech can't be replayed, so nothing is retried.
"""

import logging
from datetime import date
from typing import Callable, Optional

from .audio import AudioSource
from .config import VoiceQueueConfig
from .models import Command, FinalTranscript, PartialTranscript
from .parser import parse_sentence
from .queue_store import TaskQueue
from .recognition import RecognitionSession, TranscriptEvent

logger = logging.getLogger(__name__)


class VoiceProducer:
    """Turns a live audio stream into queued commands.

    Workflow per chunk:
        1. Read a chunk from the audio source (blocking)
        2. Feed it to the recognition session
        3. Partial transcript → progress only
        4. Final transcript → parse → append to queue, or warn and drop
    """

    def __init__(
        self,
        config: VoiceQueueConfig,
        queue: TaskQueue,
        session: RecognitionSession,
        source: AudioSource,
        clock: Callable[[], date] = date.today,
        on_partial: Optional[Callable[[str], None]] = None,
    ):
        self.config = config
        self.queue = queue
        self.session = session
        self.source = source
        self.clock = clock
        self.on_partial = on_partial
        self.running = False
        self.enqueued = 0
        self.rejected = 0

    def run(self) -> int:
        """Process audio until the stream ends or stop() is called.

        Returns:
            Number of commands enqueued during this run.
        """
        self.running = True
        logger.info("🎙  Voice server running…  (Ctrl-C to quit)")

        while self.running:
            chunk = self.source.read_chunk()
            if not chunk:
                logger.warning("Audio stream ended")
                break
            self.handle_event(self.session.feed(chunk))

        self.running = False
        logger.info(f"Producer stopped | {self.enqueued} queued, {self.rejected} unrecognised")
        return self.enqueued

    def stop(self):
        """Signal the loop to stop after the current chunk."""
        self.running = False
        logger.info("Producer stop requested")

    def handle_event(self, event: TranscriptEvent) -> Optional[Command]:
        """Route one transcript event. Returns the queued command, if any."""
        if isinstance(event, PartialTranscript):
            if event.text:
                logger.debug(f"… {event.text}")
                if self.on_partial:
                    self.on_partial(event.text)
            return None

        if not isinstance(event, FinalTranscript):
            raise TypeError(f"Unexpected transcript event: {event!r}")

        text = event.text.strip()
        if not text:
            return None

        command = parse_sentence(text, self.config, today=self.clock())
        if command is None:
            self.rejected += 1
            logger.warning(f"⚠️  Unrecognised: {text!r}")
            return None

        self.queue.append(command)
        self.enqueued += 1
        logger.info(f"🔹 queued: {command.to_dict()}")
        return command
