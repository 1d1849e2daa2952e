"""Account reconciliation against an authoritative directory.

Flow of the single-pass strategy:
1) resolve the scope filter from configuration
2) compute the managed set once per run
3) shrink it with every page of directory records
4) commit the remaining accounts as deletions

The grace-period strategy replaces 3) and 4) with persisted markers that are
set, cleared and swept in separate phases.
"""

from __future__ import annotations

from .commit import AccountDeletion, CommitResult, DeletionCommitter
from .context import ManagedSetNotResolvedError, RunContext
from .engine import (
    ReconciliationEngine,
    ReconciliationResult,
    build_grace_period_reconciler,
    build_reconciliation_engine,
)
from .grace_period import GracePeriodReconciler, GracePeriodResult
from .managed_set import ManagedSetResolver
from .options import RunOptions
from .retention import RetentionReducer, extract_claims
from .scope import (
    AllOf,
    AnyOf,
    ClaimMapping,
    Everyone,
    HasRole,
    IdIn,
    LinkedToProvider,
    Not,
    ScopeFilter,
    ScopeFilterResolver,
    ScopePredicate,
    build_scope_filter,
)

__all__ = [
    "AccountDeletion",
    "AllOf",
    "AnyOf",
    "ClaimMapping",
    "CommitResult",
    "DeletionCommitter",
    "Everyone",
    "GracePeriodReconciler",
    "GracePeriodResult",
    "HasRole",
    "IdIn",
    "LinkedToProvider",
    "ManagedSetNotResolvedError",
    "ManagedSetResolver",
    "Not",
    "ReconciliationEngine",
    "ReconciliationResult",
    "RetentionReducer",
    "RunContext",
    "RunOptions",
    "ScopeFilter",
    "ScopeFilterResolver",
    "ScopePredicate",
    "build_grace_period_reconciler",
    "build_reconciliation_engine",
    "build_scope_filter",
    "extract_claims",
]
