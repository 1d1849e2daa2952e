"""Errors raised while reconciling accounts."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for reconciliation failures."""


class DataError(ReconciliationError):
    """Raised when directory data violates the feed contract.

    Fatal for the current run: continuing would reduce the managed set from
    incomplete evidence and delete accounts that are still present upstream.
    """


class StoreError(ReconciliationError):
    """Raised by account stores when a single account operation fails."""

    def __init__(self, message: str, *, account_id: int | None = None) -> None:
        super().__init__(message)
        self.account_id = account_id
