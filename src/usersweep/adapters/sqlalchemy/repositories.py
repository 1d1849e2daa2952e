"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections import defaultdict
from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, exists, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from usersweep.adapters.sqlalchemy.mappings import (
    ACCOUNT_CHILD_TABLES,
    account_marker_table,
    account_property_table,
    account_provider_table,
    account_role_table,
    account_table,
    compile_predicate,
)
from usersweep.domain.errors import StoreError
from usersweep.domain.model import CORE_FIELDS, Account, CancelMethod

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import ColumnElement
    from sqlalchemy.orm import Session

    from usersweep.domain.model import AccountId
    from usersweep.domain.reconciliation.scope import ScopeFilter

log = getLogger(__name__)

# Keeps IN (...) lists below SQLite's bound-parameter limit.
_IN_CLAUSE_CHUNK = 500

_BLOCKING_METHODS = frozenset({CancelMethod.BLOCK, CancelMethod.BLOCK_UNPUBLISH})


class SqlAlchemyAccountRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def enumerate_ids(self, scope: ScopeFilter) -> set[AccountId]:
        stmt = select(account_table.c.id).where(compile_predicate(scope.condition))
        return set(self.session.execute(stmt).scalars())

    def has_field(self, field: str) -> bool:
        if field in CORE_FIELDS:
            return True
        stmt = select(exists().where(account_property_table.c.field == field))
        return bool(self.session.execute(stmt).scalar())

    def load_by_property(self, field: str, values: Iterable[str]) -> Sequence[Account]:
        # Matching ignores case on both sides, like the user name lookup.
        unique_values = list(dict.fromkeys(value.lower() for value in values))
        ids: set[AccountId] = set()
        for chunk in batched(unique_values, _IN_CLAUSE_CHUNK):
            if field in CORE_FIELDS:
                stmt = select(account_table.c.id).where(
                    func.lower(account_table.c[field]).in_(chunk)
                )
            else:
                stmt = (
                    select(account_property_table.c.account_id)
                    .where(account_property_table.c.field == field)
                    .where(func.lower(account_property_table.c.value).in_(chunk))
                )
            ids.update(self.session.execute(stmt).scalars())
        return self._hydrate(sorted(ids))

    def get(self, account_id: AccountId) -> Account | None:
        accounts = self._hydrate([account_id])
        return accounts[0] if accounts else None

    def add(self, account: Account) -> None:
        self.session.execute(
            insert(account_table).values(
                id=account.id,
                name=account.name,
                mail=account.mail,
                status=account.active,
            )
        )
        if account.roles:
            self.session.execute(
                insert(account_role_table),
                [{"account_id": account.id, "role": role} for role in sorted(account.roles)],
            )
        if account.providers:
            self.session.execute(
                insert(account_provider_table),
                [
                    {"account_id": account.id, "provider": provider}
                    for provider in sorted(account.providers)
                ],
            )
        if account.properties:
            self.session.execute(
                insert(account_property_table),
                [
                    {"account_id": account.id, "field": key, "value": value}
                    for key, value in sorted(account.properties.items())
                ],
            )

    def remove(self, account: Account, *, cancel_method: CancelMethod) -> None:
        log.debug("Cancelling user %s using %s", account.id, cancel_method)
        try:
            if cancel_method in _BLOCKING_METHODS:
                self.session.execute(
                    update(account_table)
                    .where(account_table.c.id == account.id)
                    .values(status=False)
                )
            else:
                for table in ACCOUNT_CHILD_TABLES:
                    self.session.execute(delete(table).where(table.c.account_id == account.id))
                self.session.execute(delete(account_table).where(account_table.c.id == account.id))
            self.session.flush()
        except SQLAlchemyError as exc:
            message = f"Could not remove user {account.id}: {exc}"
            raise StoreError(message, account_id=account.id) from exc

    def _hydrate(self, ids: Sequence[AccountId]) -> list[Account]:
        if not ids:
            return []

        rows: dict[AccountId, tuple[str, str | None, bool]] = {}
        roles: defaultdict[AccountId, set[str]] = defaultdict(set)
        providers: defaultdict[AccountId, set[str]] = defaultdict(set)
        properties: defaultdict[AccountId, dict[str, str]] = defaultdict(dict)

        for chunk in batched(ids, _IN_CLAUSE_CHUNK):
            account_rows = self.session.execute(
                select(
                    account_table.c.id,
                    account_table.c.name,
                    account_table.c.mail,
                    account_table.c.status,
                ).where(account_table.c.id.in_(chunk))
            )
            for account_id, name, mail, status in account_rows:
                rows[account_id] = (name, mail, bool(status))

            role_rows = self.session.execute(
                select(account_role_table.c.account_id, account_role_table.c.role).where(
                    account_role_table.c.account_id.in_(chunk)
                )
            )
            for account_id, role in role_rows:
                roles[account_id].add(role)

            provider_rows = self.session.execute(
                select(
                    account_provider_table.c.account_id,
                    account_provider_table.c.provider,
                ).where(account_provider_table.c.account_id.in_(chunk))
            )
            for account_id, provider in provider_rows:
                providers[account_id].add(provider)

            property_rows = self.session.execute(
                select(
                    account_property_table.c.account_id,
                    account_property_table.c.field,
                    account_property_table.c.value,
                ).where(account_property_table.c.account_id.in_(chunk))
            )
            for account_id, key, value in property_rows:
                properties[account_id][key] = value

        accounts: list[Account] = []
        for account_id in ids:
            if account_id not in rows:
                continue
            name, mail, active = rows[account_id]
            accounts.append(
                Account(
                    id=account_id,
                    name=name,
                    mail=mail,
                    active=active,
                    roles=frozenset(roles[account_id]),
                    providers=frozenset(providers[account_id]),
                    properties=properties[account_id],
                )
            )
        return accounts


class SqlAlchemyDeletionMarkerStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def set(self, module: str, account_id: AccountId, key: str, value: str) -> None:
        result = self.session.execute(
            update(account_marker_table)
            .where(self._match(module, account_id, key))
            .values(value=value)
        )
        if result.rowcount == 0:
            self.session.execute(
                insert(account_marker_table).values(
                    module=module, account_id=account_id, key=key, value=value
                )
            )

    def get(self, module: str, account_id: AccountId, key: str) -> str | None:
        stmt = select(account_marker_table.c.value).where(self._match(module, account_id, key))
        return self.session.execute(stmt).scalar_one_or_none()

    def delete(self, module: str, account_id: AccountId, key: str) -> None:
        stmt = delete(account_marker_table).where(self._match(module, account_id, key))
        self.session.execute(stmt)

    @staticmethod
    def _match(module: str, account_id: AccountId, key: str) -> ColumnElement[bool]:
        return (
            (account_marker_table.c.module == module)
            & (account_marker_table.c.account_id == account_id)
            & (account_marker_table.c.key == key)
        )

