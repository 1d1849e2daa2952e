"""Turns the final managed set into deletions."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from usersweep.domain.model import DELETE_MARKER_KEY, MARKER_MODULE, CancelMethod
from usersweep.domain.ports.execution import BatchTask, TaskFailure

if TYPE_CHECKING:
    from collections.abc import Collection

    from usersweep.domain.model import AccountId
    from usersweep.domain.ports.execution import BatchExecutor
    from usersweep.domain.ports.unit_of_work import AccountUnitOfWorkFactory

    from .context import RunContext
    from .options import RunOptions

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Outcome of a commit or sweep.

    ``deleted_count`` is the number of accounts submitted for deletion (or that
    would have been, for a dry run); ``succeeded``, ``failures`` and ``aborted``
    come from the executor.
    """

    deleted_count: int
    succeeded: int = 0
    failures: tuple[TaskFailure, ...] = field(default_factory=tuple)
    dry_run: bool = False
    aborted: bool = False

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.aborted


class AccountDeletion:
    """Deletes accounts one task per account.

    Individual failures are tolerated unless ``continue_on_error`` is off, in
    which case the first failure stops the batch.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: AccountUnitOfWorkFactory,
        executor: BatchExecutor,
        cancel_method: CancelMethod = CancelMethod.DELETE,
        continue_on_error: bool = True,
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.executor = executor
        self.cancel_method = cancel_method
        self.continue_on_error = continue_on_error

    def run(
        self,
        account_ids: Collection[AccountId],
        *,
        options: RunOptions,
        clear_marker: bool = False,
    ) -> CommitResult:
        ids = sorted(account_ids)
        log.info("%d users to delete", len(ids))

        if options.debug:
            self._log_details(ids)

        if options.dry_run:
            log.info("Dry run: %d users would be deleted", len(ids))
            return CommitResult(deleted_count=len(ids), dry_run=True)

        if not ids:
            return CommitResult(deleted_count=0)

        tasks = [
            BatchTask(
                label=f"user {account_id}",
                run=partial(self._delete_account, account_id, clear_marker=clear_marker),
            )
            for account_id in ids
        ]
        report = self.executor.execute(tasks, continue_on_error=self.continue_on_error)

        log.info("%d of %d users deleted", report.succeeded, report.total)
        if report.failures:
            log.warning("%d user deletions failed", report.failed)
            for failure in report.failures:
                log.warning("Failed to delete %s: %s", failure.label, failure.error)
        if report.aborted:
            attempted = report.succeeded + report.failed
            log.error("Deletion stopped after %d of %d users", attempted, report.total)

        return CommitResult(
            deleted_count=len(ids),
            succeeded=report.succeeded,
            failures=report.failures,
            aborted=report.aborted,
        )

    def _delete_account(self, account_id: AccountId, *, clear_marker: bool) -> None:
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            account = repositories.accounts.get(account_id)
            if account is None:
                log.info("User %s no longer exists; skipping", account_id)
            else:
                repositories.accounts.remove(account, cancel_method=self.cancel_method)
            if clear_marker:
                repositories.markers.delete(MARKER_MODULE, account_id, DELETE_MARKER_KEY)
            uow.commit()

    def _log_details(self, ids: list[AccountId]) -> None:
        with self.unit_of_work_factory() as uow:
            for account_id in ids:
                account = uow.repositories.accounts.get(account_id)
                if account is None:
                    log.debug("User %s: not found", account_id)
                    continue
                log.debug("User %s", account.describe())


class DeletionCommitter:
    def __init__(self, deletion: AccountDeletion) -> None:
        self.deletion = deletion

    def commit(self, context: RunContext) -> CommitResult:
        """Delete every account left in the run's managed set."""

        return self.deletion.run(context.managed_set, options=context.options)
