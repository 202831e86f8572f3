"""
Natural-language command parsing.

Recognized sentence shape (case-insensitive):

    add|create [a] task to <workspace> workspace <task>
        [by <due date>] [(status: <status>)]

Pure function interface — no I/O, never persists anything.
"""

import re
import logging
from datetime import date
from typing import Optional

from .config import VoiceQueueConfig
from .dates import normalize_due_date
from .models import Command, CommandKind

logger = logging.getLogger(__name__)

_QUOTES = "'\"“”‘’"

# The task is captured lazily and the whole input must be consumed, so
# the optional "by ..." and "(status: ...)" clauses are never swallowed
# into the task description.
CREATE_TASK_RE = re.compile(
    r"""
    ^\s*
    (?:add|create)\s+
    (?:(?:a|an|the|new)\s+)*
    task\s+to\s+
    (?:the\s+)?
    [{q}]?(?P<workspace>[^{q}]+?)[{q}]?\s+
    workspace\s*[:→]?\s*
    (?P<task>[^()]+?)
    (?:\s+by\s+(?P<due>[^()]+?))?
    (?:\s*\(\s*status\s*:\s*(?P<status>[^)]*)\))?
    \s*[.!]?\s*$
    """.format(q=_QUOTES),
    re.IGNORECASE | re.VERBOSE,
)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip().strip(_QUOTES).strip()


def parse_sentence(
    text: str,
    config: VoiceQueueConfig,
    today: Optional[date] = None,
) -> Optional[Command]:
    """Parse a final transcript into a Command.

    Args:
        text: Recognized sentence.
        config: Supplies the default status and due-date policy.
        today: Reference date for due-date normalization (default: today).

    Returns:
        A normalized create_task Command, or None when the sentence does
        not match the command grammar.
    """
    if not text or not text.strip():
        return None

    m = CREATE_TASK_RE.match(text)
    if not m:
        return None

    workspace = _clean(m.group("workspace"))
    task = _clean(m.group("task"))
    if not workspace or not task:
        return None

    status = _clean(m.group("status")) or config.status_default
    due_date = normalize_due_date(
        m.group("due"),
        today or date.today(),
        config.due_default,
    )

    return Command(
        kind=CommandKind.CREATE_TASK.value,
        workspace=workspace,
        task=task,
        due_date=due_date,
        status=status,
    )
