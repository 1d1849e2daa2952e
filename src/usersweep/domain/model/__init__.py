"""Public domain model surface."""

from __future__ import annotations

from usersweep.domain.model.account import (
    CORE_FIELDS,
    RESERVED_ACCOUNT_IDS,
    Account,
    AccountId,
)
from usersweep.domain.model.enums import CancelMethod
from usersweep.domain.model.identity import ExternalIdentityRecord
from usersweep.domain.model.markers import DELETE_MARKER_KEY, MARKER_MODULE

__all__ = [
    "CORE_FIELDS",
    "DELETE_MARKER_KEY",
    "MARKER_MODULE",
    "RESERVED_ACCOUNT_IDS",
    "Account",
    "AccountId",
    "CancelMethod",
    "ExternalIdentityRecord",
]
