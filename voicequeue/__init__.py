"""
Voice Task Queue

Spoken sentences → structured task commands → monday.com items.

Producer: microphone (ffmpeg) → vosk → command parser → queue.json
Dispatcher: queue.json → monday.com API → queue.json (failures only)
"""

__version__ = "1.0.0"

from .config import VoiceQueueConfig, ApiCredentials, resolve_config, load_credentials
from .models import (
    Command,
    CommandKind,
    DueDatePolicy,
    PartialTranscript,
    FinalTranscript,
    DispatchReport,
)
from .dates import normalize_due_date, next_friday
from .parser import parse_sentence
from .queue_store import TaskQueue
from .errors import (
    VoiceQueueError,
    ConfigError,
    RecognitionSetupError,
    CaptureError,
    MalformedQueueError,
    InvalidCommandError,
)
