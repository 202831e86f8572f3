import json

import pytest

from voicequeue.errors import RecognitionSetupError
from voicequeue.models import FinalTranscript, PartialTranscript
from voicequeue.recognition import RecognitionSession, locate_model


class FakeRecognizer:
    """Scripted stand-in for vosk.KaldiRecognizer.

    Each script entry is ("partial", text) or ("final", text).
    """

    def __init__(self, script):
        self.script = list(script)
        self.fed = []
        self._current = None

    def AcceptWaveform(self, data):
        self.fed.append(data)
        self._current = self.script.pop(0)
        return self._current[0] == "final"

    def Result(self):
        return json.dumps({"text": self._current[1]})

    def PartialResult(self):
        return json.dumps({"partial": self._current[1]})


def test_partial_then_final_events():
    rec = FakeRecognizer([("partial", "add"), ("partial", "add a"), ("final", "add a task ")])
    session = RecognitionSession(rec)
    assert session.feed(b"1") == PartialTranscript("add")
    assert session.feed(b"2") == PartialTranscript("add a")
    assert session.feed(b"3") == FinalTranscript("add a task")
    assert rec.fed == [b"1", b"2", b"3"]


def test_partial_text_may_shrink_or_be_empty():
    session = RecognitionSession(FakeRecognizer([("partial", "add a"), ("partial", "")]))
    assert session.feed(b"a").text == "add a"
    assert session.feed(b"b").text == ""


def test_silence_gives_empty_final():
    session = RecognitionSession(FakeRecognizer([("final", "")]))
    assert session.feed(b"\x00\x00") == FinalTranscript("")


def test_feed_after_close_fails():
    session = RecognitionSession(FakeRecognizer([]), model=object())
    session.close()
    assert session.closed
    with pytest.raises(RuntimeError):
        session.feed(b"x")


def test_context_manager_releases_handles_on_error():
    session = RecognitionSession(FakeRecognizer([]), model=object())
    with pytest.raises(ValueError):
        with session:
            raise ValueError("boom")
    assert session.closed


def test_locate_model_by_glob_picks_first_sorted(tmp_path):
    (tmp_path / "vosk-model-small-en-us-0.22").mkdir()
    (tmp_path / "vosk-model-small-en-us-0.15").mkdir()
    found = locate_model(str(tmp_path / "vosk-model-small-en-us*"))
    assert found.name == "vosk-model-small-en-us-0.15"


def test_missing_model_is_fatal(tmp_path):
    with pytest.raises(RecognitionSetupError):
        locate_model(str(tmp_path / "vosk-model-*"))
    with pytest.raises(RecognitionSetupError):
        RecognitionSession.open(str(tmp_path / "missing"), 16000)


class Handle:
    """Records when its last reference goes away."""

    def __init__(self, name, released):
        self.name = name
        self.released = released

    def __del__(self):
        self.released.append(self.name)


def test_close_releases_recognizer_before_model():
    released = []
    session = RecognitionSession(Handle("recognizer", released), model=Handle("model", released))
    session.close()
    assert released == ["recognizer", "model"]
    session.close()
    assert released == ["recognizer", "model"]
