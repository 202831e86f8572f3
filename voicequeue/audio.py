"""
Raw PCM audio sources for the producer loop.

The capture process (ffmpeg by default) writes little-endian 16-bit mono
PCM to stdout; the producer pulls fixed-size chunks from it through the
AudioSource interface, which keeps the loop testable without a microphone.
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional, Sequence

from .errors import CaptureError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


def check_ffmpeg(binary: str = "ffmpeg") -> bool:
    """Check if the capture binary is installed and runnable."""
    if shutil.which(binary) is None:
        return False
    try:
        subprocess.run([binary, "-version"], capture_output=True, check=True)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


class AudioSource(ABC):
    """Blocking source of raw audio chunks."""

    @abstractmethod
    def read_chunk(self) -> bytes:
        """Block until the next chunk is available.

        Returns:
            bytes: Up to one chunk of PCM audio.
            b"": The stream has ended.
        """

    def close(self) -> None:
        """Release the underlying stream."""

    def __enter__(self) -> "AudioSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StreamAudioSource(AudioSource):
    """Reads chunks from any binary stream (pipe, file, BytesIO)."""

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._stream = stream
        self.chunk_size = chunk_size

    def read_chunk(self) -> bytes:
        return self._stream.read(self.chunk_size) or b""

    def close(self) -> None:
        self._stream.close()


class FFmpegCaptureSource(StreamAudioSource):
    """Spawns the capture process and reads PCM from its stdout."""

    def __init__(self, args: Sequence[str], chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.args = list(args)
        try:
            self._process = subprocess.Popen(
                self.args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise CaptureError(f"Could not start capture process {self.args[0]!r}: {e}") from e
        logger.info(f"Capture started (pid {self._process.pid}): {' '.join(self.args)}")
        super().__init__(self._process.stdout, chunk_size)

    @property
    def returncode(self) -> Optional[int]:
        """Exit status of the capture process, or None while it runs."""
        return self._process.poll()

    def close(self) -> None:
        if self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                logger.warning("Capture process did not exit, killing it")
                self._process.kill()
                self._process.wait()
        super().close()
        logger.info(f"Capture stopped (exit code {self._process.returncode})")
