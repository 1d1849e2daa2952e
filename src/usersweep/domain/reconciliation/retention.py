"""Shrinks the managed set by accounts still present in the directory."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from usersweep.config.errors import ConfigurationError
from usersweep.domain.errors import DataError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from usersweep.domain.model import Account, AccountId, ExternalIdentityRecord
    from usersweep.domain.ports.unit_of_work import AccountUnitOfWorkFactory

    from .context import RunContext
    from .scope import ClaimMapping

log = getLogger(__name__)


def extract_claims(records: Iterable[ExternalIdentityRecord], claim: str) -> list[str]:
    """Return the distinct claim values of ``records`` in feed order.

    Raises ``DataError`` if any record lacks the claim or carries a value that
    is not a string or integer; nothing is returned for such a batch.
    """

    values: list[str] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        raw = record.get(claim)
        if raw is not None and (isinstance(raw, bool) or not isinstance(raw, str | int)):
            raise DataError(
                f"Directory record {index} has a non-scalar {claim!r} claim: {type(raw).__name__}"
            )
        value = str(raw).strip() if raw is not None else ""
        if not value:
            raise DataError(f"Directory record {index} has no {claim!r} claim")
        if value not in seen:
            seen.add(value)
            values.append(value)
    return values


def ensure_join_field(
    unit_of_work_factory: AccountUnitOfWorkFactory,
    mapping: ClaimMapping,
) -> None:
    """Raise ``ConfigurationError`` when no account can carry ``mapping.field``."""

    with unit_of_work_factory() as uow:
        known = uow.repositories.accounts.has_field(mapping.field)
    if not known:
        raise ConfigurationError(
            f"Unknown user id field {mapping.field!r}: not a core field and no account stores it"
        )


def load_matching_accounts(
    unit_of_work_factory: AccountUnitOfWorkFactory,
    mapping: ClaimMapping,
    records: Sequence[ExternalIdentityRecord],
) -> Sequence[Account]:
    values = extract_claims(records, mapping.claim)
    if not values:
        return ()
    with unit_of_work_factory() as uow:
        return uow.repositories.accounts.load_by_property(mapping.field, values)


class RetentionReducer:
    def __init__(
        self,
        *,
        unit_of_work_factory: AccountUnitOfWorkFactory,
        mapping: ClaimMapping,
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.mapping = mapping

    def check_mapping(self) -> None:
        ensure_join_field(self.unit_of_work_factory, self.mapping)

    def retain(
        self,
        context: RunContext,
        records: Sequence[ExternalIdentityRecord],
    ) -> set[AccountId]:
        """Remove accounts matching ``records`` from the managed set.

        Returns the ids that were actually removed by this call.
        """

        managed = context.managed_set
        if not records:
            return set()

        accounts = load_matching_accounts(self.unit_of_work_factory, self.mapping, records)
        matched = {account.id for account in accounts}
        removed = matched & managed
        managed.difference_update(matched)

        log.info("%d users retained", len(matched))
        if matched:
            log.debug("Retained users: %s", ", ".join(str(i) for i in sorted(matched)))
        return removed
