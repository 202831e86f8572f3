"""
Streaming speech recognition with vosk.

A RecognitionSession turns raw PCM chunks into transcript events:
PartialTranscript while an utterance is in progress, FinalTranscript when
the engine detects a sentence boundary. The session owns the model and
recognizer and releases both together on close().
"""

import glob
import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from .errors import RecognitionSetupError
from .models import FinalTranscript, PartialTranscript

logger = logging.getLogger(__name__)

TranscriptEvent = Union[PartialTranscript, FinalTranscript]


def locate_model(model_path: str) -> Path:
    """Resolve a model locator (directory path or glob pattern).

    Raises:
        RecognitionSetupError: if nothing matches.
    """
    if glob.has_magic(model_path):
        matches = sorted(p for p in glob.glob(model_path) if Path(p).is_dir())
        if not matches:
            raise RecognitionSetupError(f"Vosk model not found (no match for {model_path!r})")
        return Path(matches[0])

    path = Path(model_path)
    if not path.is_dir():
        raise RecognitionSetupError(f"Vosk model not found at {path}")
    return path


class RecognitionSession:
    """Event-stream view of a vosk recognizer.

    Usage:
        with RecognitionSession.open("models/vosk-model-small-en-us*", 16000) as session:
            event = session.feed(chunk)
    """

    def __init__(self, recognizer: Any, model: Any = None):
        self._recognizer = recognizer
        self._model = model

    @classmethod
    def open(cls, model_path: str, sample_rate: int) -> "RecognitionSession":
        """Load the model and create a recognizer.

        Raises:
            RecognitionSetupError: if the model is missing or fails to load.
        """
        path = locate_model(model_path)

        import vosk
        vosk.SetLogLevel(-1)

        try:
            model = vosk.Model(str(path))
        except Exception as e:
            raise RecognitionSetupError(f"Could not load vosk model {path}: {e}") from e

        try:
            recognizer = vosk.KaldiRecognizer(model, float(sample_rate))
        except Exception as e:
            raise RecognitionSetupError(f"Could not create recognizer: {e}") from e

        logger.info(f"Recognizer ready | model={path.name} | rate={sample_rate}")
        return cls(recognizer, model)

    @property
    def closed(self) -> bool:
        return self._recognizer is None

    def feed(self, chunk: bytes) -> TranscriptEvent:
        """Feed one chunk of audio.

        Returns:
            FinalTranscript if the chunk completed an utterance (the
            engine then starts a fresh one), else PartialTranscript.
        """
        if self._recognizer is None:
            raise RuntimeError("Recognition session is closed")

        if self._recognizer.AcceptWaveform(chunk):
            return FinalTranscript(_text_of(self._recognizer.Result(), "text").strip())
        return PartialTranscript(_text_of(self._recognizer.PartialResult(), "partial"))

    def close(self) -> None:
        """Release recognizer and model. Unflushed audio is discarded."""
        if self._recognizer is None and self._model is None:
            return
        # Recognizer before model: it holds a reference into the model.
        # vosk frees each native handle when its last reference goes away.
        recognizer, self._recognizer = self._recognizer, None
        del recognizer
        model, self._model = self._model, None
        del model
        logger.debug("Recognition session closed")

    def __enter__(self) -> "RecognitionSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _text_of(payload: Optional[str], key: str) -> str:
    if not payload:
        return ""
    try:
        return json.loads(payload).get(key, "") or ""
    except (ValueError, AttributeError):
        logger.warning(f"Unexpected recognizer output: {payload!r}")
        return ""
