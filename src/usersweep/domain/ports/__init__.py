"""Domain port definitions for adapters."""

from __future__ import annotations

from .execution import BatchExecutor, BatchReport, BatchTask, Task, TaskFailure
from .fetching import IdentityFeed
from .persistence import AccountRepository, DeletionMarkerStore
from .unit_of_work import (
    AccountRepositories,
    AccountUnitOfWork,
    AccountUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AccountRepositories",
    "AccountRepository",
    "AccountUnitOfWork",
    "AccountUnitOfWorkFactory",
    "BatchExecutor",
    "BatchReport",
    "BatchTask",
    "DeletionMarkerStore",
    "IdentityFeed",
    "RepositoryCollection",
    "Task",
    "TaskFailure",
    "UnitOfWork",
]
