"""Ports for the account store and the deletion marker store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from usersweep.domain.model import Account, AccountId, CancelMethod
    from usersweep.domain.reconciliation.scope import ScopeFilter


@runtime_checkable
class AccountRepository(Protocol):
    """Persistence contract for local accounts."""

    def enumerate_ids(self, scope: ScopeFilter) -> set[AccountId]: ...

    def has_field(self, field: str) -> bool:
        """True for core fields and for custom properties stored on any account."""
        ...

    def load_by_property(self, field: str, values: Iterable[str]) -> Sequence[Account]:
        """Accounts whose ``field`` equals one of ``values``, ignoring case."""
        ...

    def get(self, account_id: AccountId) -> Account | None: ...

    def add(self, account: Account) -> None: ...

    def remove(self, account: Account, *, cancel_method: CancelMethod) -> None:
        """Delete ``account``; raises ``StoreError`` on storage failure."""
        ...


@runtime_checkable
class DeletionMarkerStore(Protocol):
    """Key-value annotations attached to accounts, kept outside the account store."""

    def set(self, module: str, account_id: AccountId, key: str, value: str) -> None: ...

    def get(self, module: str, account_id: AccountId, key: str) -> str | None: ...

    def delete(self, module: str, account_id: AccountId, key: str) -> None: ...
