"""
Durable command queue backed by a single JSON file.

The file holds one JSON array of command objects in insertion order.
Every write replaces the whole file atomically (temp file + rename), and
each read-modify-write cycle holds an exclusive lock on a sibling
``.lock`` file so a producer and a dispatcher can share the queue.
"""

import fcntl
import json
import os
import logging
import tempfile
from collections import Counter
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedQueueError
from .models import Command

logger = logging.getLogger(__name__)


class QueueRecord(BaseModel):
    """Schema of one element of the queue file."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True, strict=True)

    command: str = Field(min_length=1)
    workspace: str = Field(min_length=1)
    task: str = Field(min_length=1)
    due_date: str = Field(alias="due-date", pattern=r"^(\d{4}-\d{2}-\d{2})?$")
    status: str = Field(min_length=1)

    def to_command(self) -> Command:
        return Command(
            kind=self.command,
            workspace=self.workspace,
            task=self.task,
            due_date=self.due_date,
            status=self.status,
        )


class TaskQueue:
    """Ordered, durable list of pending commands.

    Duplicates are allowed and never collapsed: the same sentence spoken
    twice is queued (and dispatched) twice.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def __repr__(self) -> str:
        return f"TaskQueue({str(self.path)!r})"

    # ── Public API ──────────────────────────────────────────────────

    def init(self) -> None:
        """Create the queue file as an empty array if missing or blank."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._locked():
            if self.path.exists() and self.path.read_text(encoding="utf-8").strip():
                return
            self._write([])
            logger.info(f"Initialized empty queue at {self.path}")

    def append(self, command: Command) -> None:
        """Append one command.

        Raises:
            InvalidCommandError: if the command may not be persisted.
            MalformedQueueError: if the existing file is corrupt.
        """
        command.validate()
        with self._locked():
            commands = self._read()
            commands.append(command)
            self._write(commands)
        logger.debug(f"Queue {self.path.name}: {len(commands)} pending")

    def read_all(self) -> list[Command]:
        """Return every queued command in order.

        A missing or blank file reads as an empty queue.

        Raises:
            MalformedQueueError: if the file is not a JSON array of
                well-formed command objects.
        """
        with self._locked():
            return self._read()

    def remove_succeeded(self, succeeded: Iterable[Command]) -> list[Command]:
        """Drop succeeded commands and rewrite the file with the rest.

        Removal is by value equality on the full record, one queued
        occurrence per succeeded entry. Relative order of the remainder
        is preserved. With nothing to remove the file is not rewritten.

        Returns:
            The commands left in the queue.
        """
        to_remove = Counter(succeeded)
        if not to_remove:
            return self.read_all()

        with self._locked():
            remaining = []
            for command in self._read():
                if to_remove[command] > 0:
                    to_remove[command] -= 1
                else:
                    remaining.append(command)
            self._write(remaining)

        missing = sum(to_remove.values())
        if missing:
            logger.warning(f"{missing} succeeded command(s) were no longer in the queue")
        return remaining

    # ── Internals ───────────────────────────────────────────────────

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "a") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self) -> list[Command]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise MalformedQueueError(f"{self.path}: invalid JSON: {e}") from e
        if not isinstance(data, list):
            raise MalformedQueueError(f"{self.path}: expected a JSON array, got {type(data).__name__}")

        commands = []
        for index, item in enumerate(data):
            try:
                commands.append(QueueRecord.model_validate(item).to_command())
            except ValidationError as e:
                raise MalformedQueueError(f"{self.path}: element {index} is not a valid command: {e}") from e
        return commands

    def _write(self, commands: list[Command]) -> None:
        payload = json.dumps([c.to_dict() for c in commands], indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
