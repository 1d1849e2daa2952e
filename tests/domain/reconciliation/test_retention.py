from __future__ import annotations

import pytest

from tests.helpers.accounts import FakeAccountStores, directory_records, make_account
from usersweep.domain.errors import DataError
from usersweep.domain.reconciliation import (
    ClaimMapping,
    ManagedSetNotResolvedError,
    RetentionReducer,
    RunContext,
    extract_claims,
)

CLAIM = "userPrincipalName"


@pytest.fixture
def seeded_stores(stores: FakeAccountStores) -> FakeAccountStores:
    stores.seed(
        make_account(2, name="alice@example.org"),
        make_account(3, name="bob@example.org"),
        make_account(4, name="carol@example.org"),
        make_account(8, name="admin@example.org", roles={"protected"}),
        make_account(9, name="dave@example.org", properties={"employee_id": "E-9"}),
    )
    return stores


def _reducer(stores: FakeAccountStores, field: str = "name") -> RetentionReducer:
    return RetentionReducer(
        unit_of_work_factory=stores.unit_of_work,
        mapping=ClaimMapping(claim=CLAIM, field=field),
    )


def _context(managed: set[int]) -> RunContext:
    context = RunContext()
    context.managed_set = set(managed)
    return context


def test_retain_removes_matching_accounts(seeded_stores: FakeAccountStores) -> None:
    context = _context({2, 3, 4})

    removed = _reducer(seeded_stores).retain(
        context, directory_records(CLAIM, "alice@example.org", "carol@example.org")
    )

    assert removed == {2, 4}
    assert context.managed_set == {3}


def test_retain_with_no_records_leaves_managed_set_alone(
    seeded_stores: FakeAccountStores,
) -> None:
    context = _context({2, 3})

    removed = _reducer(seeded_stores).retain(context, [])

    assert removed == set()
    assert context.managed_set == {2, 3}
    assert seeded_stores.accounts.load_calls == []


def test_retain_is_idempotent(seeded_stores: FakeAccountStores) -> None:
    context = _context({2, 3, 4})
    reducer = _reducer(seeded_stores)
    records = directory_records(CLAIM, "bob@example.org")

    first = reducer.retain(context, records)
    second = reducer.retain(context, records)

    assert first == {3}
    assert second == set()
    assert context.managed_set == {2, 4}


def test_accounts_outside_the_managed_set_are_ignored(
    seeded_stores: FakeAccountStores,
) -> None:
    context = _context({2, 3})

    removed = _reducer(seeded_stores).retain(
        context, directory_records(CLAIM, "admin@example.org", "unknown@example.org")
    )

    assert removed == set()
    assert context.managed_set == {2, 3}


def test_unknown_claim_values_are_ignored(seeded_stores: FakeAccountStores) -> None:
    context = _context({2})

    _reducer(seeded_stores).retain(context, directory_records(CLAIM, "nobody@example.org"))

    assert context.managed_set == {2}


def test_page_is_resolved_with_a_single_lookup(seeded_stores: FakeAccountStores) -> None:
    context = _context({2, 3, 4})

    _reducer(seeded_stores).retain(
        context,
        directory_records(CLAIM, "alice@example.org", "bob@example.org", "alice@example.org"),
    )

    assert seeded_stores.accounts.load_calls == [
        ("name", ("alice@example.org", "bob@example.org"))
    ]


def test_retain_joins_on_custom_properties(seeded_stores: FakeAccountStores) -> None:
    context = _context({2, 9})
    reducer = RetentionReducer(
        unit_of_work_factory=seeded_stores.unit_of_work,
        mapping=ClaimMapping(claim="employeeId", field="employee_id"),
    )

    reducer.retain(context, [{"employeeId": "E-9"}])

    assert context.managed_set == {2}


@pytest.mark.parametrize(
    "records",
    [
        [{CLAIM: "alice@example.org"}, {"mail": "bob@example.org"}],
        [{CLAIM: None}],
        [{CLAIM: "   "}],
        [{CLAIM: ["alice@example.org"]}],
        [{CLAIM: {"value": "alice@example.org"}}],
        [{CLAIM: True}],
    ],
)
def test_record_without_claim_aborts_the_page(
    seeded_stores: FakeAccountStores,
    records: list[dict[str, object]],
) -> None:
    context = _context({2, 3})

    with pytest.raises(DataError):
        _reducer(seeded_stores).retain(context, records)

    assert context.managed_set == {2, 3}
    assert seeded_stores.accounts.load_calls == []


def test_retain_requires_a_resolved_managed_set(seeded_stores: FakeAccountStores) -> None:
    with pytest.raises(ManagedSetNotResolvedError):
        _reducer(seeded_stores).retain(RunContext(), directory_records(CLAIM, "a"))


def test_extract_claims_keeps_feed_order_without_duplicates() -> None:
    records = [{CLAIM: "b"}, {CLAIM: " a "}, {CLAIM: "b"}, {CLAIM: 42}]

    assert extract_claims(records, CLAIM) == ["b", "a", "42"]


def test_non_scalar_claim_is_reported_by_type() -> None:
    with pytest.raises(DataError, match="non-scalar 'userPrincipalName' claim: list"):
        extract_claims([{CLAIM: "a"}, {CLAIM: ["b"]}], CLAIM)


def test_retain_ignores_case_of_directory_values(seeded_stores: FakeAccountStores) -> None:
    context = _context({2, 3, 9})

    _reducer(seeded_stores).retain(context, directory_records(CLAIM, "ALICE@example.org"))
    _reducer(seeded_stores, "employee_id").retain(context, directory_records(CLAIM, "e-9"))

    assert context.managed_set == {3}
