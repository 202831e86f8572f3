import io
from datetime import date

import pytest

from voicequeue.audio import StreamAudioSource
from voicequeue.config import VoiceQueueConfig
from voicequeue.models import FinalTranscript, PartialTranscript
from voicequeue.producer import VoiceProducer
from voicequeue.queue_store import TaskQueue

WEDNESDAY = date(2024, 6, 5)


class FakeSession:
    """Returns one scripted event per fed chunk."""

    def __init__(self, events):
        self.events = list(events)
        self.chunks = []

    def feed(self, chunk):
        self.chunks.append(chunk)
        return self.events.pop(0)


@pytest.fixture
def queue(tmp_path):
    q = TaskQueue(tmp_path / "queue.json")
    q.init()
    return q


def make_producer(queue, events, **kwargs):
    source = StreamAudioSource(io.BytesIO(b"x" * 4 * len(events)), chunk_size=4)
    return VoiceProducer(
        VoiceQueueConfig(),
        queue,
        FakeSession(events),
        source,
        clock=lambda: WEDNESDAY,
        **kwargs,
    )


def test_only_matching_final_transcripts_are_queued(queue):
    partials = []
    producer = make_producer(queue, [
        PartialTranscript("create task"),
        FinalTranscript(""),
        FinalTranscript("turn off the lights"),
        PartialTranscript(""),
        FinalTranscript("create task to Ops workspace File expense report"),
    ], on_partial=partials.append)

    assert producer.run() == 1
    assert producer.rejected == 1
    assert partials == ["create task"]

    queued = queue.read_all()
    assert len(queued) == 1
    assert queued[0].workspace == "Ops"
    assert queued[0].task == "File expense report"
    assert queued[0].due_date == "2024-06-07"
    assert queued[0].status == "todo"


def test_unmatched_sentence_leaves_queue_untouched(queue):
    before = queue.path.read_bytes()
    producer = make_producer(queue, [FinalTranscript("turn off the lights")])
    assert producer.run() == 0
    assert queue.path.read_bytes() == before


def test_loop_ends_with_the_stream(queue):
    producer = make_producer(queue, [PartialTranscript("a"), PartialTranscript("ab")])
    producer.run()
    assert producer.session.chunks == [b"xxxx", b"xxxx"]
    assert not producer.running


def test_stop_ends_loop_after_current_chunk(queue):
    producer = make_producer(queue, [PartialTranscript("a"), PartialTranscript("b")])
    producer.on_partial = lambda text: producer.stop()
    producer.run()
    assert len(producer.session.chunks) == 1


def test_handle_event_returns_queued_command(queue):
    producer = make_producer(queue, [])
    command = producer.handle_event(FinalTranscript("  add task to Ops workspace call bank  "))
    assert command.task == "call bank"
    assert queue.read_all() == [command]
    assert producer.handle_event(PartialTranscript("add task to Ops workspace x")) is None
    assert len(queue.read_all()) == 1
