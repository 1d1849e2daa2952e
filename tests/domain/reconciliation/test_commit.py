from __future__ import annotations

import logging

import pytest

from tests.helpers.accounts import FakeAccountStores, make_account
from usersweep.adapters.batch import SequentialBatchExecutor
from usersweep.domain.model import DELETE_MARKER_KEY, MARKER_MODULE, CancelMethod
from usersweep.domain.reconciliation import (
    AccountDeletion,
    DeletionCommitter,
    RunContext,
    RunOptions,
)


@pytest.fixture
def seeded_stores(stores: FakeAccountStores) -> FakeAccountStores:
    stores.seed(*(make_account(account_id) for account_id in (2, 5, 7, 9)))
    return stores


def _committer(
    stores: FakeAccountStores,
    cancel_method: CancelMethod = CancelMethod.DELETE,
) -> DeletionCommitter:
    return DeletionCommitter(
        AccountDeletion(
            unit_of_work_factory=stores.unit_of_work,
            executor=SequentialBatchExecutor(),
            cancel_method=cancel_method,
        )
    )


def _context(managed: set[int], options: RunOptions | None = None) -> RunContext:
    context = RunContext(options=options or RunOptions())
    context.managed_set = set(managed)
    return context


def test_commit_deletes_every_managed_account(seeded_stores: FakeAccountStores) -> None:
    result = _committer(seeded_stores).commit(_context({5, 7, 9}))

    assert result.deleted_count == 3
    assert result.succeeded == 3
    assert result.failed == 0
    assert not result.dry_run
    assert seeded_stores.accounts.removed_ids == [5, 7, 9]
    assert set(seeded_stores.accounts.accounts) == {2}


def test_commit_never_touches_accounts_outside_the_managed_set(
    seeded_stores: FakeAccountStores,
) -> None:
    _committer(seeded_stores).commit(_context({5}))

    assert seeded_stores.accounts.removed_ids == [5]


def test_dry_run_reports_without_deleting(seeded_stores: FakeAccountStores) -> None:
    result = _committer(seeded_stores).commit(_context({5, 7, 9}, RunOptions(dry_run=True)))

    assert result.deleted_count == 3
    assert result.dry_run
    assert seeded_stores.accounts.removed == []
    assert seeded_stores.commits == 0


def test_failed_deletion_does_not_stop_the_rest(seeded_stores: FakeAccountStores) -> None:
    seeded_stores.accounts.failing_ids.add(7)

    result = _committer(seeded_stores).commit(_context({5, 7, 9}))

    assert result.deleted_count == 3
    assert result.succeeded == 2
    assert result.failed == 1
    assert result.failures[0].label == "user 7"
    assert "Could not remove user 7" in result.failures[0].error
    assert seeded_stores.accounts.removed_ids == [5, 9]
    assert 7 in seeded_stores.accounts.accounts


def test_failures_are_logged_as_warnings(
    seeded_stores: FakeAccountStores,
    caplog: pytest.LogCaptureFixture,
) -> None:
    seeded_stores.accounts.failing_ids.add(7)

    with caplog.at_level(logging.WARNING, logger="usersweep.domain.reconciliation.commit"):
        _committer(seeded_stores).commit(_context({5, 7}))

    assert "1 user deletions failed" in caplog.text
    assert "Failed to delete user 7" in caplog.text


def test_cancel_method_is_passed_to_the_store(seeded_stores: FakeAccountStores) -> None:
    _committer(seeded_stores, CancelMethod.BLOCK).commit(_context({5}))

    assert seeded_stores.accounts.removed == [(5, CancelMethod.BLOCK)]


def test_empty_managed_set_deletes_nothing(seeded_stores: FakeAccountStores) -> None:
    result = _committer(seeded_stores).commit(_context(set()))

    assert result.deleted_count == 0
    assert seeded_stores.accounts.removed == []


def test_vanished_account_is_skipped(seeded_stores: FakeAccountStores) -> None:
    result = _committer(seeded_stores).commit(_context({5, 42}))

    assert result.succeeded == 2
    assert seeded_stores.accounts.removed_ids == [5]


def test_debug_logs_each_account_without_changing_the_outcome(
    seeded_stores: FakeAccountStores,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.DEBUG, logger="usersweep.domain.reconciliation.commit"):
        result = _committer(seeded_stores).commit(
            _context({5, 7}, RunOptions(dry_run=True, debug=True))
        )

    assert result.deleted_count == 2
    assert "#5 name='user5'" in caplog.text
    assert "#7 name='user7'" in caplog.text
    assert seeded_stores.accounts.removed == []


def test_deletion_can_clear_markers(seeded_stores: FakeAccountStores) -> None:
    seeded_stores.markers.set(MARKER_MODULE, 5, DELETE_MARKER_KEY, "2026-01-01T00:00:00+00:00")
    deletion = AccountDeletion(
        unit_of_work_factory=seeded_stores.unit_of_work,
        executor=SequentialBatchExecutor(),
    )

    deletion.run({5}, options=RunOptions(), clear_marker=True)

    assert seeded_stores.markers.marked_ids() == set()
    assert seeded_stores.commits == 1


def test_stopping_on_first_failure_is_reported_as_aborted(
    seeded_stores: FakeAccountStores,
) -> None:
    seeded_stores.accounts.failing_ids.add(5)
    committer = DeletionCommitter(
        AccountDeletion(
            unit_of_work_factory=seeded_stores.unit_of_work,
            executor=SequentialBatchExecutor(),
            continue_on_error=False,
        )
    )

    result = committer.commit(_context({5, 7, 9}))

    assert result.aborted
    assert not result.ok
    assert result.succeeded == 0
    assert result.failed == 1
    assert seeded_stores.accounts.removed == []


def test_completed_batch_is_not_aborted(seeded_stores: FakeAccountStores) -> None:
    result = _committer(seeded_stores).commit(_context({5, 7}))

    assert not result.aborted
    assert result.ok
