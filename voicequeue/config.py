"""
Configuration for the voice task queue.

Built-in defaults are overlaid with an optional JSON override file.
Secrets (API token, board id) come from the environment, optionally
loaded from a .env file.
"""

import json
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional, Union

from dotenv import load_dotenv

from .errors import ConfigError
from .models import DueDatePolicy

logger = logging.getLogger(__name__)

DEFAULT_CAPTURE_COMMAND: tuple[str, ...] = (
    "ffmpeg", "-hide_banner", "-loglevel", "panic",
    "-f", "avfoundation", "-i", ":{device}",
    "-ac", "1", "-ar", "{sample_rate}",
    "-f", "s16le", "-",
)


@dataclass(frozen=True)
class VoiceQueueConfig:
    """Immutable options shared by the producer and the dispatcher."""

    # Queue
    queue_path: Path = field(default_factory=lambda: Path("queue.json"))

    # Audio capture
    sample_rate: int = 16000
    chunk_size: int = 4096
    capture_device: str = "0"
    capture_command: tuple[str, ...] = DEFAULT_CAPTURE_COMMAND

    # Recognition model: a directory or a glob pattern
    model_path: str = "models/vosk-model-small-en-us*"

    # Command defaults
    status_default: str = "todo"
    due_default: DueDatePolicy = DueDatePolicy.NEXT_FRIDAY

    # Remote API
    api_url: str = "https://api.monday.com/v2"
    api_version: str = ""
    request_timeout: float = 30.0
    status_column: str = "status"
    date_column: str = "date4"  # "Due Date" column id on the default board

    log_level: str = "INFO"

    def capture_args(self) -> list[str]:
        """Render the capture command template for this device and rate."""
        return [
            arg.format(device=self.capture_device, sample_rate=self.sample_rate)
            for arg in self.capture_command
        ]


@dataclass(frozen=True)
class ApiCredentials:
    """Remote API secrets. Only the dispatcher needs these."""
    api_token: str
    board_id: str


# ============================================================================
# Override file key → (field name, coercion)
# ============================================================================

def _positive_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("boolean is not an integer")
    result = int(value)
    if result <= 0:
        raise ValueError("must be positive")
    return result


def _positive_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a number")
    result = float(value)
    if result <= 0:
        raise ValueError("must be positive")
    return result


def _non_empty_str(value: Any) -> str:
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise TypeError("expected a string")
    result = str(value).strip()
    if not result:
        raise ValueError("must not be empty")
    return result


def _plain_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value


def _command_template(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = value.split()
    if not isinstance(value, list) or not value or not all(isinstance(v, str) for v in value):
        raise TypeError("expected a non-empty list of strings")
    return tuple(value)


_OVERRIDE_MAP: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "queue_file":       ("queue_path",      lambda v: Path(_non_empty_str(v))),
    "queue_path":       ("queue_path",      lambda v: Path(_non_empty_str(v))),
    "sample_rate":      ("sample_rate",     _positive_int),
    "chunk_size":       ("chunk_size",      _positive_int),
    "capture_device":   ("capture_device",  _non_empty_str),
    "capture_command":  ("capture_command", _command_template),
    "model_path":       ("model_path",      _non_empty_str),
    "status_default":   ("status_default",  _non_empty_str),
    "due_default":      ("due_default",     DueDatePolicy),
    "api_url":          ("api_url",         _non_empty_str),
    "api_version":      ("api_version",     _plain_str),
    "request_timeout":  ("request_timeout", _positive_float),
    "status_column":    ("status_column",   _non_empty_str),
    "date_column":      ("date_column",     _non_empty_str),
    "log_level":        ("log_level",       lambda v: _non_empty_str(v).upper()),
}


def _read_overrides(source: Union[str, Path, Mapping[str, Any], None]) -> dict[str, Any]:
    """Best-effort read of the override source. Never raises."""
    if source is None:
        return {}
    if isinstance(source, Mapping):
        return dict(source)

    path = Path(source)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.debug(f"No config overrides at {path}, using defaults")
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: top level is not a JSON object")
        return {}
    return data


def resolve_config(
    overrides_source: Union[str, Path, Mapping[str, Any], None] = None,
    defaults: Optional[VoiceQueueConfig] = None,
) -> VoiceQueueConfig:
    """Merge built-in defaults with optional overrides.

    Args:
        overrides_source: Path to a JSON file, an already-parsed mapping,
            or None. A missing or unparsable source yields the defaults.
        defaults: Base configuration (default: ``VoiceQueueConfig()``).

    Returns:
        The resolved, immutable configuration. Override keys replace
        defaults one level deep; unknown keys are ignored and values that
        fail their type check keep the default.
    """
    config = defaults or VoiceQueueConfig()
    overrides = _read_overrides(overrides_source)

    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in _OVERRIDE_MAP:
            logger.debug(f"Ignoring unknown config key: {key}")
            continue
        field_name, coerce = _OVERRIDE_MAP[key]
        try:
            changes[field_name] = coerce(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid value for {key!r} ({value!r}): {e}")

    if changes:
        config = replace(config, **changes)
        logger.debug(f"Config overrides applied: {sorted(changes)}")
    return config


def load_credentials(env_file: Optional[str] = ".env") -> ApiCredentials:
    """Load API credentials from the environment.

    Required env vars:
        MONDAY_API_TOKEN — personal or app API token
        DEFAULT_BOARD_ID — board that receives created items

    Raises:
        ConfigError: if either value is missing.
    """
    if env_file:
        load_dotenv(env_file)

    token = os.environ.get("MONDAY_API_TOKEN", "").strip()
    if not token:
        logger.error("MONDAY_API_TOKEN is required but not set")
        raise ConfigError("MONDAY_API_TOKEN is required")

    board = os.environ.get("DEFAULT_BOARD_ID", "").strip()
    if not board:
        logger.error("DEFAULT_BOARD_ID is required but not set")
        raise ConfigError("DEFAULT_BOARD_ID is required")
    if not board.isdigit():
        raise ConfigError(f"DEFAULT_BOARD_ID must be numeric, got {board!r}")

    return ApiCredentials(api_token=token, board_id=board)
