"""Port for running batches of account operations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

type Task = Callable[[], None]


@dataclass(frozen=True, slots=True)
class BatchTask:
    """A zero-argument operation with a label used in progress and failure reports."""

    label: str
    run: Task


@dataclass(frozen=True, slots=True)
class TaskFailure:
    label: str
    error: str


@dataclass(frozen=True, slots=True)
class BatchReport:
    """Aggregate outcome of one batch."""

    total: int
    succeeded: int
    failures: tuple[TaskFailure, ...] = field(default_factory=tuple)
    aborted: bool = False

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.aborted


@runtime_checkable
class BatchExecutor(Protocol):
    """Runs every task to completion before returning."""

    def execute(
        self,
        tasks: Sequence[BatchTask],
        *,
        continue_on_error: bool = True,
    ) -> BatchReport: ...
