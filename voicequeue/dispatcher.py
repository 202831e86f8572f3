"""
Queue dispatcher.

Single pass over the queue: each command is executed against the remote
API in order, one call at a time. Successes are pruned from the queue
afterwards; failures stay in place, verbatim, for the next run.
"""

import logging
from typing import Any, Protocol

from .config import ApiCredentials, VoiceQueueConfig
from .models import Command, CommandKind, CreateItemResult, DispatchReport, NO_DUE_DATE
from .queue_store import TaskQueue

logger = logging.getLogger(__name__)


class ItemCreator(Protocol):
    def create_item(self, board_id: str, item_name: str, column_values: dict[str, Any]) -> CreateItemResult:
        ...


def build_column_values(command: Command, config: VoiceQueueConfig) -> dict[str, Any]:
    """Board column payload for a create_task command."""
    columns: dict[str, Any] = {config.status_column: {"label": command.status}}
    if command.due_date != NO_DUE_DATE:
        columns[config.date_column] = {"date": command.due_date}
    return columns


class Dispatcher:
    """Executes queued commands and keeps only the failures."""

    def __init__(
        self,
        queue: TaskQueue,
        client: ItemCreator,
        config: VoiceQueueConfig,
        credentials: ApiCredentials,
    ):
        self.queue = queue
        self.client = client
        self.config = config
        self.credentials = credentials

    def execute(self, command: Command) -> CreateItemResult:
        """Run one command. Unknown kinds fail without a remote call."""
        if command.kind != CommandKind.CREATE_TASK.value:
            return CreateItemResult(success=False, error=f"Unknown command: {command.to_dict()}")

        return self.client.create_item(
            self.credentials.board_id,
            command.task,
            build_column_values(command, self.config),
        )

    def run(self) -> DispatchReport:
        """Process the whole queue once and prune what succeeded.

        Raises:
            MalformedQueueError: if the queue file is corrupt.
        """
        report = DispatchReport()
        commands = self.queue.read_all()
        if not commands:
            logger.info("Nothing to process.")
            return report

        logger.info(f"Dispatching {len(commands)} queued command(s)")
        succeeded: list[Command] = []

        for command in commands:
            result = self.execute(command)
            if result.success:
                logger.info(f"✅ Created item {result.item_id}")
                succeeded.append(command)
                report.succeeded.append((command, result.item_id))
            elif command.kind != CommandKind.CREATE_TASK.value:
                logger.warning(f"⚠️  Unknown command: {command.to_dict()}")
                report.failed.append((command, result.error))
            else:
                logger.error(f"❌ Error: {result.error}")
                report.failed.append((command, result.error))

        remaining = self.queue.remove_succeeded(succeeded)
        report.remaining = len(remaining)
        logger.info(
            f"Dispatch done | {len(report.succeeded)} created, "
            f"{len(report.failed)} failed, {report.remaining} left in queue"
        )
        return report
