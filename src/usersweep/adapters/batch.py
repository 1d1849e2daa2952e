"""In-process batch executor."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from usersweep.domain.ports.execution import BatchReport, TaskFailure

if TYPE_CHECKING:
    from collections.abc import Sequence

    from usersweep.domain.ports.execution import BatchExecutor, BatchTask

log = getLogger(__name__)

DEFAULT_PROGRESS_EVERY = 50


class SequentialBatchExecutor:
    """Runs tasks one after another and blocks until the batch is done.

    With ``continue_on_error`` a failing task is recorded and the remaining
    tasks still run; otherwise the first failure stops the batch.
    """

    def __init__(self, *, progress_every: int = DEFAULT_PROGRESS_EVERY) -> None:
        if progress_every < 1:
            raise ValueError("progress_every must be positive")
        self.progress_every = progress_every

    def execute(
        self,
        tasks: Sequence[BatchTask],
        *,
        continue_on_error: bool = True,
    ) -> BatchReport:
        total = len(tasks)
        succeeded = 0
        failures: list[TaskFailure] = []

        for index, task in enumerate(tasks, start=1):
            try:
                task.run()
            except Exception as exc:  # noqa: BLE001
                log.debug("Task %s failed", task.label, exc_info=True)
                failures.append(TaskFailure(label=task.label, error=str(exc) or type(exc).__name__))
                if not continue_on_error:
                    log.error("Stopping batch after failure in %s", task.label)
                    return BatchReport(
                        total=total,
                        succeeded=succeeded,
                        failures=tuple(failures),
                        aborted=True,
                    )
            else:
                succeeded += 1

            if index % self.progress_every == 0 or index == total:
                log.info("Processed %d of %d tasks", index, total)

        return BatchReport(total=total, succeeded=succeeded, failures=tuple(failures))


if TYPE_CHECKING:
    _executor_check: BatchExecutor = SequentialBatchExecutor()
