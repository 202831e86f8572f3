"""
Data models shared by the producer and the dispatcher.
No external dependencies — pure Python dataclasses.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from .errors import InvalidCommandError


class CommandKind(str, Enum):
    """Command tags understood by the dispatcher."""
    CREATE_TASK = "create_task"


class DueDatePolicy(str, Enum):
    """What to use as a due date when the sentence names none."""
    NEXT_FRIDAY = "next_friday"
    NONE = "none"


# Stored in place of a date under DueDatePolicy.NONE
NO_DUE_DATE = ""
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class Command:
    """A fully-normalized instruction to create one task in a workspace.

    Equality and hashing cover every field; the queue has no id column,
    so two commands with identical fields are the same command.
    """
    kind: str
    workspace: str
    task: str
    due_date: str
    status: str

    def validate(self) -> None:
        """Raise InvalidCommandError unless the command may be persisted."""
        if self.kind not in {k.value for k in CommandKind}:
            raise InvalidCommandError(f"Unsupported command kind: {self.kind!r}")
        for name in ("workspace", "task", "status"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidCommandError(f"Command field {name!r} must be a non-empty string")
        if not isinstance(self.due_date, str):
            raise InvalidCommandError("Command due date must be a string")
        if self.due_date != NO_DUE_DATE:
            try:
                if not ISO_DATE_RE.match(self.due_date):
                    raise ValueError(self.due_date)
                date.fromisoformat(self.due_date)
            except ValueError:
                raise InvalidCommandError(
                    f"Command due date must be YYYY-MM-DD or empty, got {self.due_date!r}"
                ) from None

    def to_dict(self) -> dict[str, str]:
        """Queue-file representation (note the hyphenated ``due-date`` key)."""
        return {
            "command": self.kind,
            "workspace": self.workspace,
            "task": self.task,
            "due-date": self.due_date,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Command":
        return cls(
            kind=data["command"],
            workspace=data["workspace"],
            task=data["task"],
            due_date=data["due-date"],
            status=data["status"],
        )


@dataclass(frozen=True)
class PartialTranscript:
    """Provisional text for an utterance still in progress. Never persisted."""
    text: str


@dataclass(frozen=True)
class FinalTranscript:
    """Committed text for a completed utterance. May be empty (silence)."""
    text: str


@dataclass
class CreateItemResult:
    """Outcome of one create-item call against the remote API."""
    success: bool
    item_id: Optional[str] = None
    error: Any = None


@dataclass
class DispatchReport:
    """Summary of a single dispatcher pass over the queue."""
    succeeded: list[tuple[Command, Optional[str]]] = field(default_factory=list)
    failed: list[tuple[Command, Any]] = field(default_factory=list)
    remaining: int = 0

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)
