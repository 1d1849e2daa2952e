"""Single-pass reconciliation driven by a directory feed.

A run computes the managed set, shrinks it with every page the feed yields and
commits whatever is left. A join field no account can carry raises
``ConfigurationError`` before the managed set is computed, and a ``DataError``
raised by the feed or while reading a page aborts the run before anything is
deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .commit import AccountDeletion, CommitResult, DeletionCommitter
from .context import RunContext
from .grace_period import GracePeriodReconciler
from .managed_set import ManagedSetResolver
from .options import RunOptions
from .retention import RetentionReducer
from .scope import ScopeFilterResolver

if TYPE_CHECKING:
    from usersweep.config.reconciliation import ReconciliationConfig
    from usersweep.domain.ports.execution import BatchExecutor
    from usersweep.domain.ports.fetching import IdentityFeed
    from usersweep.domain.ports.unit_of_work import AccountUnitOfWorkFactory

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    managed: int
    retained: int
    pages: int
    commit: CommitResult


@dataclass(slots=True)
class ReconciliationEngine:
    resolver: ManagedSetResolver
    reducer: RetentionReducer
    committer: DeletionCommitter

    def run(self, feed: IdentityFeed, *, options: RunOptions | None = None) -> ReconciliationResult:
        self.reducer.check_mapping()
        context = RunContext(options=options or RunOptions())
        managed = len(self.resolver.compute_managed_set(context))

        pages = 0
        for page in feed:
            pages += 1
            self.reducer.retain(context, page)
        retained = managed - len(context.managed_set)
        log.info("Directory feed complete: %d pages, %d managed users retained", pages, retained)

        result = self.committer.commit(context)
        return ReconciliationResult(
            managed=managed,
            retained=retained,
            pages=pages,
            commit=result,
        )


def build_reconciliation_engine(
    config: ReconciliationConfig,
    *,
    unit_of_work_factory: AccountUnitOfWorkFactory,
    executor: BatchExecutor,
) -> ReconciliationEngine:
    scope = ScopeFilterResolver(config)
    deletion = AccountDeletion(
        unit_of_work_factory=unit_of_work_factory,
        executor=executor,
        cancel_method=config.user_cancel_method,
    )
    return ReconciliationEngine(
        resolver=ManagedSetResolver(unit_of_work_factory=unit_of_work_factory, scope=scope.scope),
        reducer=RetentionReducer(unit_of_work_factory=unit_of_work_factory, mapping=scope.mapping),
        committer=DeletionCommitter(deletion),
    )


def build_grace_period_reconciler(
    config: ReconciliationConfig,
    *,
    unit_of_work_factory: AccountUnitOfWorkFactory,
    executor: BatchExecutor,
) -> GracePeriodReconciler:
    scope = ScopeFilterResolver(config)
    return GracePeriodReconciler(
        unit_of_work_factory=unit_of_work_factory,
        resolver=ManagedSetResolver(unit_of_work_factory=unit_of_work_factory, scope=scope.scope),
        mapping=scope.mapping,
        deletion=AccountDeletion(
            unit_of_work_factory=unit_of_work_factory,
            executor=executor,
            cancel_method=config.user_cancel_method,
        ),
    )
