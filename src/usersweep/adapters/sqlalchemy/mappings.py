"""SQLAlchemy table metadata for accounts and deletion markers."""

from __future__ import annotations

from functools import singledispatch
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    ColumnElement,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    and_,
    false,
    not_,
    or_,
    select,
    true,
)

from usersweep.domain.reconciliation.scope import (
    AllOf,
    AnyOf,
    Everyone,
    HasRole,
    IdIn,
    LinkedToProvider,
    Not,
)

if TYPE_CHECKING:
    from usersweep.domain.reconciliation.scope import ScopePredicate


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Account store ---------------------------------------------------------------

account_table = Table(
    "account",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", String, nullable=False, unique=True),
    Column("mail", String, nullable=True),
    Column("status", Boolean, nullable=False, default=True),
)

account_role_table = Table(
    "account_role",
    metadata,
    Column("account_id", Integer, ForeignKey("account.id"), primary_key=True),
    Column("role", String, primary_key=True),
)

# One row per external login an account is linked to (provider + remote name).
account_provider_table = Table(
    "account_provider",
    metadata,
    Column("account_id", Integer, ForeignKey("account.id"), primary_key=True),
    Column("provider", String, primary_key=True),
    Column("authname", String, nullable=True),
)

account_property_table = Table(
    "account_property",
    metadata,
    Column("account_id", Integer, ForeignKey("account.id"), primary_key=True),
    Column("field", String, primary_key=True),
    Column("value", String, nullable=False),
    Index("ix_account_property_field_value", "field", "value"),
)

# Marker store ----------------------------------------------------------------

# No foreign key: a marker may outlive the account it refers to until the sweep
# removes both.
account_marker_table = Table(
    "account_marker",
    metadata,
    Column("module", String, primary_key=True),
    Column("account_id", Integer, primary_key=True),
    Column("key", String, primary_key=True),
    Column("value", String, nullable=False),
)

ACCOUNT_CHILD_TABLES: tuple[Table, ...] = (
    account_role_table,
    account_provider_table,
    account_property_table,
)


# Scope predicates --------------------------------------------------------------


@singledispatch
def compile_predicate(predicate: ScopePredicate) -> ColumnElement[bool]:
    """Translate a scope predicate into a WHERE clause over ``account``."""

    raise TypeError(f"Unsupported scope predicate: {type(predicate).__name__}")


@compile_predicate.register
def _(predicate: Everyone) -> ColumnElement[bool]:
    _ = predicate
    return true()


@compile_predicate.register
def _(predicate: HasRole) -> ColumnElement[bool]:
    if not predicate.roles:
        return false()
    return (
        select(account_role_table.c.account_id)
        .where(account_role_table.c.account_id == account_table.c.id)
        .where(account_role_table.c.role.in_(sorted(predicate.roles)))
        .exists()
    )


@compile_predicate.register
def _(predicate: LinkedToProvider) -> ColumnElement[bool]:
    return (
        select(account_provider_table.c.account_id)
        .where(account_provider_table.c.account_id == account_table.c.id)
        .where(account_provider_table.c.provider == predicate.provider)
        .exists()
    )


@compile_predicate.register
def _(predicate: IdIn) -> ColumnElement[bool]:
    if not predicate.ids:
        return false()
    return account_table.c.id.in_(sorted(predicate.ids))


@compile_predicate.register
def _(predicate: AllOf) -> ColumnElement[bool]:
    if not predicate.predicates:
        return true()
    return and_(*(compile_predicate(inner) for inner in predicate.predicates))


@compile_predicate.register
def _(predicate: AnyOf) -> ColumnElement[bool]:
    if not predicate.predicates:
        return false()
    return or_(*(compile_predicate(inner) for inner in predicate.predicates))


@compile_predicate.register
def _(predicate: Not) -> ColumnElement[bool]:
    return not_(compile_predicate(predicate.predicate))
