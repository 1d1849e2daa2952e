"""Scope rules deciding which local accounts the reconciler may delete.

Rules are expressed as small immutable predicates over :class:`Account` so they
can be evaluated in memory and compiled into store queries by adapters. The
composition built by :func:`build_scope_filter` is:

1. accounts linked to any configured provider (every account when none are configured)
2. minus accounts holding an excluded role
3. minus explicitly excluded ids

Reserved ids (0 and 1) are excluded by :class:`ScopeFilter` itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from usersweep.config.errors import ConfigurationError
from usersweep.domain.model import RESERVED_ACCOUNT_IDS

if TYPE_CHECKING:
    from collections.abc import Iterable

    from usersweep.config.reconciliation import ReconciliationConfig
    from usersweep.domain.model import Account, AccountId


@runtime_checkable
class ScopePredicate(Protocol):
    def matches(self, account: Account) -> bool: ...


@dataclass(frozen=True, slots=True)
class Everyone:
    def matches(self, account: Account) -> bool:
        _ = account
        return True


@dataclass(frozen=True, slots=True)
class HasRole:
    """True when the account holds at least one of ``roles``."""

    roles: frozenset[str]

    def matches(self, account: Account) -> bool:
        return not self.roles.isdisjoint(account.roles)


@dataclass(frozen=True, slots=True)
class LinkedToProvider:
    provider: str

    def matches(self, account: Account) -> bool:
        return self.provider in account.providers


@dataclass(frozen=True, slots=True)
class IdIn:
    ids: frozenset[AccountId]

    def matches(self, account: Account) -> bool:
        return account.id in self.ids


@dataclass(frozen=True, slots=True)
class AllOf:
    predicates: tuple[ScopePredicate, ...]

    def matches(self, account: Account) -> bool:
        return all(predicate.matches(account) for predicate in self.predicates)


@dataclass(frozen=True, slots=True)
class AnyOf:
    predicates: tuple[ScopePredicate, ...]

    def matches(self, account: Account) -> bool:
        return any(predicate.matches(account) for predicate in self.predicates)


@dataclass(frozen=True, slots=True)
class Not:
    predicate: ScopePredicate

    def matches(self, account: Account) -> bool:
        return not self.predicate.matches(account)


@dataclass(frozen=True, slots=True)
class ClaimMapping:
    """Pairs a directory claim with the local field it identifies."""

    claim: str
    field: str

    def __post_init__(self) -> None:
        if not self.claim or not self.claim.strip():
            raise ConfigurationError("A directory claim name is required for the user id mapping")
        if not self.field or not self.field.strip():
            raise ConfigurationError("A local field name is required for the user id mapping")


@dataclass(frozen=True, slots=True)
class ScopeFilter:
    """Eligibility rule for the managed set."""

    predicate: ScopePredicate = Everyone()

    @property
    def condition(self) -> ScopePredicate:
        """The configured predicate guarded against reserved accounts."""
        return AllOf((Not(IdIn(RESERVED_ACCOUNT_IDS)), self.predicate))

    def matches(self, account: Account) -> bool:
        return self.condition.matches(account)


def build_scope_filter(
    *,
    excluded_roles: Iterable[str] = (),
    excluded_ids: Iterable[AccountId] = (),
    providers: Iterable[str] = (),
) -> ScopeFilter:
    roles = frozenset(excluded_roles)
    ids = frozenset(excluded_ids)
    provider_names = sorted(set(providers))

    predicates: list[ScopePredicate] = []
    if provider_names:
        predicates.append(AnyOf(tuple(LinkedToProvider(name) for name in provider_names)))
    if roles:
        predicates.append(Not(HasRole(roles)))
    if ids:
        predicates.append(Not(IdIn(ids)))

    if not predicates:
        return ScopeFilter()
    if len(predicates) == 1:
        return ScopeFilter(predicates[0])
    return ScopeFilter(AllOf(tuple(predicates)))


class ScopeFilterResolver:
    """Turns validated configuration into the claim mapping and scope filter.

    Both are built in the constructor so a missing mapping fails at startup.
    """

    def __init__(self, config: ReconciliationConfig) -> None:
        self.mapping = ClaimMapping(claim=config.user_id_claim, field=config.user_id_field)
        self.scope = build_scope_filter(
            excluded_roles=config.excluded_roles,
            excluded_ids=config.excluded_ids,
            providers=config.providers,
        )
