"""Tests for the chart of accounts and the journal entry lifecycle."""

import random
from datetime import date
from decimal import Decimal

import pytest

from north_ledger.ledger import (
    AccountNotFoundError,
    ChartOfAccounts,
    ImmutableEntryError,
    InvalidStatusTransitionError,
    build_reversal,
    can_transition,
    check_status_change,
    ensure_editable,
    generate_reference,
    mark_posted,
    mark_reversed,
    mark_void,
)
from north_ledger.models.ledger import AccountType, JournalEntryStatus

from tests.conftest import CLIENT_ID, make_entry


class TestChartOfAccounts:
    """Lookup and scoping."""

    def test_only_scope_accounts_are_kept(self, chart):
        assert len(chart) == 6
        assert all(a.owner_id == CLIENT_ID for a in chart)
        assert chart.scope_id == CLIENT_ID

    def test_get_by_id_and_code(self, chart):
        assert chart.get("acc-cash").name == "Cash"
        assert chart.get("1000").id == "acc-cash"
        assert chart.get(" 4000 ").name == "Sales"

    def test_get_unknown_returns_none(self, chart):
        assert chart.get("nope") is None
        assert chart.get("") is None
        assert chart.get(None) is None

    def test_require_raises(self, chart):
        with pytest.raises(AccountNotFoundError):
            chart.require("nope")

    def test_active_excludes_inactive_and_sorts_by_code(self, chart):
        codes = [a.code for a in chart.active()]
        assert codes == ["1000", "1100", "2000", "4000", "6000"]

    def test_by_type(self, chart):
        expenses = chart.by_type(AccountType.EXPENSE)
        assert {a.id for a in expenses} == {"acc-supplies", "acc-old"}

    def test_contains(self, chart):
        assert "1000" in chart
        assert "acc-other" not in chart
        assert 1000 not in chart

    def test_empty_chart(self):
        chart = ChartOfAccounts([], CLIENT_ID)
        assert len(chart) == 0
        assert chart.active() == []


class TestLifecycle:
    """Status transitions, immutability and reversals."""

    def test_allowed_transitions(self):
        assert can_transition(JournalEntryStatus.DRAFT, JournalEntryStatus.POSTED)
        assert can_transition(JournalEntryStatus.DRAFT, JournalEntryStatus.VOID)
        assert can_transition(JournalEntryStatus.POSTED, JournalEntryStatus.VOID)
        assert not can_transition(JournalEntryStatus.POSTED, JournalEntryStatus.DRAFT)
        assert not can_transition(JournalEntryStatus.VOID, JournalEntryStatus.POSTED)
        assert not can_transition(JournalEntryStatus.VOID, JournalEntryStatus.DRAFT)

    def test_mark_posted_sets_timestamp_and_leaves_input(self):
        draft = make_entry([("1000", 100, 0), ("4000", 0, 100)])
        posted = mark_posted(draft)
        assert posted.status == JournalEntryStatus.POSTED
        assert posted.posted_at is not None
        assert draft.status == JournalEntryStatus.DRAFT
        assert posted.id == draft.id

    def test_posted_cannot_be_posted_again(self):
        posted = mark_posted(make_entry([("1000", 100, 0), ("4000", 0, 100)]))
        with pytest.raises(InvalidStatusTransitionError):
            mark_posted(posted)

    def test_void_records_who(self):
        posted = mark_posted(make_entry([("1000", 100, 0), ("4000", 0, 100)]))
        voided = mark_void(posted, voided_by="cpa-1")
        assert voided.status == JournalEntryStatus.VOID
        assert voided.voided_by == "cpa-1"
        assert voided.voided_at is not None

    def test_void_is_terminal(self):
        voided = mark_void(make_entry([("1000", 100, 0), ("4000", 0, 100)]), voided_by="cpa-1")
        with pytest.raises(InvalidStatusTransitionError):
            mark_void(voided, voided_by="cpa-1")

    def test_only_drafts_are_editable(self):
        draft = make_entry([("1000", 100, 0), ("4000", 0, 100)])
        ensure_editable(draft)
        with pytest.raises(ImmutableEntryError):
            ensure_editable(mark_posted(draft))

    def test_reversal_swaps_every_line(self):
        original = mark_posted(make_entry(
            [("acc-cash", 100, 0), ("acc-sales", 0, 100)],
            reference="JE-20250314-001",
        ))
        reversal = build_reversal(original, created_by="cpa-1", on_date=date(2025, 4, 1))

        assert reversal.status == JournalEntryStatus.POSTED
        assert reversal.reverses_entry_id == original.id
        assert reversal.id != original.id
        assert reversal.date == date(2025, 4, 1)
        assert reversal.description.startswith("Reversal of JE-20250314-001")
        assert [(l.debit_amount, l.credit_amount) for l in reversal.lines] == [
            (Decimal("0"), Decimal("100")),
            (Decimal("100"), Decimal("0")),
        ]
        assert reversal.is_balanced

    def test_draft_cannot_be_reversed(self):
        with pytest.raises(InvalidStatusTransitionError):
            build_reversal(make_entry([("1000", 100, 0), ("4000", 0, 100)]), created_by="cpa-1")

    def test_reversed_entry_stays_posted_and_links_reversal(self):
        original = mark_posted(make_entry([("acc-cash", 100, 0), ("acc-sales", 0, 100)]))
        reversal = build_reversal(original, created_by="cpa-1")

        reversed_entry = mark_reversed(original, reversal.id)

        assert reversed_entry.status == JournalEntryStatus.POSTED
        assert reversed_entry.reversed_by_entry_id == reversal.id
        assert reversed_entry.in_reversal_pair
        assert original.reversed_by_entry_id is None

    def test_reversed_entry_cannot_be_voided_or_reversed_again(self):
        original = mark_posted(make_entry([("acc-cash", 100, 0), ("acc-sales", 0, 100)]))
        reversal = build_reversal(original, created_by="cpa-1")
        reversed_entry = mark_reversed(original, reversal.id)

        with pytest.raises(InvalidStatusTransitionError):
            mark_void(reversed_entry, voided_by="cpa-1")
        with pytest.raises(InvalidStatusTransitionError):
            mark_reversed(reversed_entry, reversal.id)
        with pytest.raises(InvalidStatusTransitionError):
            mark_reversed(reversal, original.id)

    def test_status_change_checks(self):
        draft = make_entry([("acc-cash", 100, 0), ("acc-sales", 0, 100)])
        posted = mark_posted(draft)
        reversal = build_reversal(posted, created_by="cpa-1")

        check_status_change(draft, posted)
        check_status_change(posted, mark_void(posted, voided_by="cpa-1"))
        check_status_change(posted, mark_reversed(posted, reversal.id))

        with pytest.raises(InvalidStatusTransitionError):
            check_status_change(posted, draft)
        with pytest.raises(InvalidStatusTransitionError):
            check_status_change(posted, posted)
        with pytest.raises(InvalidStatusTransitionError):
            check_status_change(
                mark_reversed(posted, reversal.id),
                mark_void(posted, voided_by="cpa-1"),
            )

    def test_generate_reference_format(self):
        ref = generate_reference(date(2025, 3, 14), rng=random.Random(7))
        prefix, day, number = ref.split("-")
        assert prefix == "JE"
        assert day == "20250314"
        assert len(number) == 3 and number.isdigit()

    def test_generate_reference_prefix(self):
        assert generate_reference(date(2025, 1, 2), prefix="GJ").startswith("GJ-20250102-")
