"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from usersweep.adapters.batch import SequentialBatchExecutor
from usersweep.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyAccountUnitOfWork,
    is_started,
    startup,
)
from usersweep.domain.reconciliation import (
    RunContext,
    RunOptions,
    build_grace_period_reconciler,
    build_reconciliation_engine,
)

if TYPE_CHECKING:
    from usersweep.config.reconciliation import ReconciliationConfig
    from usersweep.domain.ports.execution import BatchExecutor
    from usersweep.domain.ports.fetching import IdentityFeed
    from usersweep.domain.ports.unit_of_work import AccountUnitOfWork
    from usersweep.domain.reconciliation import (
        CommitResult,
        GracePeriodResult,
        ReconciliationResult,
    )

UnitOfWorkFactory = Callable[[], "AccountUnitOfWork"]


log = getLogger(__name__)


def reconcile_accounts(
    config: ReconciliationConfig,
    *,
    feed: IdentityFeed,
    options: RunOptions | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    executor: BatchExecutor | None = None,
) -> ReconciliationResult:
    """Delete in-scope accounts that the directory feed no longer lists."""

    effective_options = options or RunOptions()
    engine = build_reconciliation_engine(
        config,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        executor=executor or SequentialBatchExecutor(),
    )
    log.info(
        "Starting reconciliation: claim=%s, field=%s, dry_run=%s, debug=%s",
        config.user_id_claim,
        config.user_id_field,
        effective_options.dry_run,
        effective_options.debug,
    )

    result = engine.run(feed, options=effective_options)

    log.info(
        f"Finished reconciliation: managed={result.managed}, retained={result.retained}, "
        f"deleted={result.commit.deleted_count}, failed={result.commit.failed}, "
        f"dry_run={result.commit.dry_run}"
    )
    return result


def mark_accounts(
    config: ReconciliationConfig,
    *,
    feed: IdentityFeed,
    options: RunOptions | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> tuple[int, int]:
    """Mark every in-scope account, then unmark those the feed still lists.

    Returns the number of marked and unmarked accounts.
    """

    reconciler = build_grace_period_reconciler(
        config,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        executor=SequentialBatchExecutor(),
    )
    context = RunContext(options=options or RunOptions())
    marked = reconciler.mark(context)
    unmarked: set[int] = set()
    for page in feed:
        unmarked |= reconciler.retain(context, page)
    log.info("Finished marking: marked=%d, unmarked=%d", len(marked), len(unmarked & marked))
    return len(marked), len(unmarked & marked)


def sweep_accounts(
    config: ReconciliationConfig,
    *,
    options: RunOptions | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    executor: BatchExecutor | None = None,
) -> CommitResult:
    """Delete every in-scope account that still carries a deletion marker."""

    reconciler = build_grace_period_reconciler(
        config,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        executor=executor or SequentialBatchExecutor(),
    )
    result = reconciler.sweep(RunContext(options=options or RunOptions()))
    log.info(
        "Finished sweep: deleted=%d, failed=%d, dry_run=%s",
        result.deleted_count,
        result.failed,
        result.dry_run,
    )
    return result


def grace_period_reconcile(
    config: ReconciliationConfig,
    *,
    feed: IdentityFeed,
    options: RunOptions | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    executor: BatchExecutor | None = None,
) -> GracePeriodResult:
    """Mark, retain and sweep in one run."""

    reconciler = build_grace_period_reconciler(
        config,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        executor=executor or SequentialBatchExecutor(),
    )
    return reconciler.run(feed, options=options)


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyAccountUnitOfWork
