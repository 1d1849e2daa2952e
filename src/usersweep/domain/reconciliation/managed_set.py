"""Computes the accounts a run is allowed to delete."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from usersweep.domain.model import RESERVED_ACCOUNT_IDS

if TYPE_CHECKING:
    from usersweep.domain.model import AccountId
    from usersweep.domain.ports.unit_of_work import AccountUnitOfWorkFactory

    from .context import RunContext
    from .scope import ScopeFilter

log = getLogger(__name__)


class ManagedSetResolver:
    def __init__(
        self,
        *,
        unit_of_work_factory: AccountUnitOfWorkFactory,
        scope: ScopeFilter,
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.scope = scope

    def compute_managed_set(self, context: RunContext) -> set[AccountId]:
        """Return the run's managed set, querying the store only on first use."""

        if context.has_managed_set:
            return context.managed_set

        with self.unit_of_work_factory() as uow:
            ids = uow.repositories.accounts.enumerate_ids(self.scope)

        managed = set(ids) - RESERVED_ACCOUNT_IDS
        context.managed_set = managed
        log.info("%d users marked for deletion", len(managed))
        return managed
