"""
Exception hierarchy for the voice task queue.
"""


class VoiceQueueError(Exception):
    """Base class for all voice queue errors."""


class ConfigError(VoiceQueueError, ValueError):
    """A required configuration value or credential is missing or invalid."""


class RecognitionSetupError(VoiceQueueError):
    """The speech model could not be located or loaded."""


class CaptureError(VoiceQueueError):
    """The audio capture process could not be started."""


class MalformedQueueError(VoiceQueueError):
    """The queue file is not a JSON array of well-formed command objects."""


class InvalidCommandError(VoiceQueueError, ValueError):
    """A command is not fully normalized or has an unsupported kind."""
