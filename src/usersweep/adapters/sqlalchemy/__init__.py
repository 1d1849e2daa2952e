"""SQLAlchemy adapter package for usersweep."""

from __future__ import annotations

from .mappings import (
    account_marker_table,
    account_property_table,
    account_provider_table,
    account_role_table,
    account_table,
    compile_predicate,
    metadata,
)
from .repositories import SqlAlchemyAccountRepository, SqlAlchemyDeletionMarkerStore

__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemyDeletionMarkerStore",
    "account_marker_table",
    "account_property_table",
    "account_provider_table",
    "account_role_table",
    "account_table",
    "compile_predicate",
    "metadata",
]
