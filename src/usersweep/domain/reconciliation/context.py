"""State owned by a single reconciliation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from usersweep.domain.model import AccountId

from .options import RunOptions


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ManagedSetNotResolvedError(RuntimeError):
    """Raised when a phase needs the managed set before it was computed."""


@dataclass(slots=True)
class RunContext:
    """Created at run start, shrunk by retention, read at commit, then discarded.

    The ``pending_*`` sets let a dry run of the grace-period strategy report what
    the marker store would contain without writing to it.
    """

    options: RunOptions = field(default_factory=RunOptions)
    started_at: datetime = field(default_factory=_utcnow)
    pending_marks: set[AccountId] = field(default_factory=set[AccountId])
    pending_unmarks: set[AccountId] = field(default_factory=set[AccountId])
    _managed: set[AccountId] | None = None

    @property
    def has_managed_set(self) -> bool:
        return self._managed is not None

    @property
    def managed_set(self) -> set[AccountId]:
        if self._managed is None:
            raise ManagedSetNotResolvedError("Managed set has not been computed for this run")
        return self._managed

    @managed_set.setter
    def managed_set(self, value: set[AccountId]) -> None:
        if self._managed is not None:
            raise ManagedSetNotResolvedError("Managed set is already computed for this run")
        self._managed = value
