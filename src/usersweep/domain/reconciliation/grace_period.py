"""Two-phase strategy: mark candidates, unmark retained accounts, sweep the rest.

A marker is the only signal the sweep acts on. The sweep deletes every marked
account in scope regardless of how long ago it was marked; the grace period is
whatever time the caller leaves between the mark and sweep phases. Re-marking
an account resets its timestamp.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from usersweep.domain.model import DELETE_MARKER_KEY, MARKER_MODULE

from .context import RunContext
from .options import RunOptions
from .retention import ensure_join_field, load_matching_accounts

if TYPE_CHECKING:
    from collections.abc import Sequence

    from usersweep.domain.model import AccountId, ExternalIdentityRecord
    from usersweep.domain.ports.fetching import IdentityFeed
    from usersweep.domain.ports.unit_of_work import AccountUnitOfWorkFactory

    from .commit import AccountDeletion, CommitResult
    from .managed_set import ManagedSetResolver
    from .scope import ClaimMapping

type Clock = Callable[[], datetime]

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class GracePeriodResult:
    marked: int
    unmarked: int
    sweep: CommitResult


class GracePeriodReconciler:
    def __init__(
        self,
        *,
        unit_of_work_factory: AccountUnitOfWorkFactory,
        resolver: ManagedSetResolver,
        mapping: ClaimMapping,
        deletion: AccountDeletion,
        clock: Clock = _utcnow,
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.resolver = resolver
        self.mapping = mapping
        self.deletion = deletion
        self.clock = clock

    def mark(self, context: RunContext) -> set[AccountId]:
        """Stamp every managed account with the current time."""

        ensure_join_field(self.unit_of_work_factory, self.mapping)
        managed = self.resolver.compute_managed_set(context)
        if context.options.dry_run:
            context.pending_marks |= managed
            context.pending_unmarks -= managed
            log.info("Dry run: %d users would be marked", len(managed))
            return set(managed)

        stamp = self.clock().isoformat()
        with self.unit_of_work_factory() as uow:
            markers = uow.repositories.markers
            for account_id in sorted(managed):
                markers.set(MARKER_MODULE, account_id, DELETE_MARKER_KEY, stamp)
            uow.commit()
        log.info("%d users marked for deletion at %s", len(managed), stamp)
        return set(managed)

    def retain(
        self,
        context: RunContext,
        records: Sequence[ExternalIdentityRecord],
    ) -> set[AccountId]:
        """Clear the marker of every account matching ``records``."""

        if not records:
            return set()

        accounts = load_matching_accounts(self.unit_of_work_factory, self.mapping, records)
        retained = {account.id for account in accounts}
        if context.options.dry_run:
            context.pending_unmarks |= retained
            context.pending_marks -= retained
        elif retained:
            with self.unit_of_work_factory() as uow:
                markers = uow.repositories.markers
                for account_id in sorted(retained):
                    markers.delete(MARKER_MODULE, account_id, DELETE_MARKER_KEY)
                uow.commit()

        log.info("%d users retained", len(retained))
        for account in accounts:
            log.debug("Retained user %s", account.name)
        return retained

    def sweep(self, context: RunContext) -> CommitResult:
        """Delete every managed account that still carries a marker."""

        managed = self.resolver.compute_managed_set(context)
        marked = self._marked_ids(context, managed)
        log.info("%d marked users found", len(marked))
        return self.deletion.run(marked, options=context.options, clear_marker=True)

    def run(self, feed: IdentityFeed, *, options: RunOptions | None = None) -> GracePeriodResult:
        """Mark, retain from every page of ``feed`` and sweep in one run."""

        context = RunContext(options=options or RunOptions())
        marked = self.mark(context)
        unmarked: set[AccountId] = set()
        for page in feed:
            unmarked |= self.retain(context, page)
        result = self.sweep(context)
        return GracePeriodResult(
            marked=len(marked),
            unmarked=len(unmarked & marked),
            sweep=result,
        )

    def _marked_ids(self, context: RunContext, managed: set[AccountId]) -> set[AccountId]:
        marked = managed & context.pending_marks
        candidates = sorted(managed - context.pending_marks - context.pending_unmarks)
        with self.unit_of_work_factory() as uow:
            markers = uow.repositories.markers
            for account_id in candidates:
                if markers.get(MARKER_MODULE, account_id, DELETE_MARKER_KEY) is not None:
                    marked.add(account_id)
        return marked
