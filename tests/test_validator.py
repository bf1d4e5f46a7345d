"""Tests for the journal entry validator."""

from decimal import Decimal

import pytest

from north_ledger.config import LedgerSettings
from north_ledger.ledger import JournalValidationError
from north_ledger.validation import JournalEntryValidator

from tests.conftest import make_entry


class TestBalanceRules:
    """Debits must equal credits and the total must not be zero."""

    def test_balanced_entry_is_valid(self, validator, chart):
        """Cash 100 debit / Sales 100 credit is accepted."""
        entry = make_entry([("1000", 100, 0), ("4000", 0, 100)])
        result = validator.validate(entry, chart)
        assert result.is_valid
        assert result.issues == []
        assert result.total_debit == Decimal("100")
        assert result.total_credit == Decimal("100")

    def test_unbalanced_entry_is_rejected(self, validator, chart):
        """A 100 debit against an 80 credit reports the balance rule first."""
        entry = make_entry([("1000", 100, 0), ("4000", 0, 80)])
        result = validator.validate(entry, chart)
        assert not result.is_valid
        assert result.first_error == "Total debits must equal total credits."

    def test_unbalanced_without_accounts_still_reports_balance_first(self, validator):
        """Balance is reported before per-line problems."""
        entry = make_entry([("", 100, 0), ("", 0, 80)])
        result = validator.validate(entry)
        assert result.first_error == "Total debits must equal total credits."
        assert result.error_count == 3

    def test_all_zero_lines_are_rejected(self, validator, chart):
        """An entry moving nothing is not an entry."""
        entry = make_entry([("1000", 0, 0), ("4000", 0, 0)])
        result = validator.validate(entry, chart)
        assert not result.is_valid
        assert "cannot be zero" in result.first_error

    def test_split_debits_balance_single_credit(self, validator, chart):
        """Two debit lines may balance one credit line."""
        entry = make_entry([("1000", "33.33", 0), ("1100", "33.34", 0), ("4000", 0, "66.67")])
        assert validator.validate(entry, chart).is_valid


class TestLineRules:
    """Per-line account and amount checks."""

    def test_missing_description(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("4000", 0, 100)], description="")
        result = validator.validate(entry, chart)
        assert result.first_error == "Description is required."

    def test_missing_account(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("", 0, 100)])
        result = validator.validate(entry, chart)
        assert result.first_error == "Line 2 is missing an account."

    def test_unknown_account(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("9999", 0, 100)])
        result = validator.validate(entry, chart)
        assert result.first_error == "Line 2 references an unknown account: 9999"

    def test_other_clients_account_is_unknown(self, validator, chart):
        """acc-other belongs to client-2 and is invisible here."""
        entry = make_entry([("acc-other", 100, 0), ("4000", 0, 100)])
        result = validator.validate(entry, chart)
        assert result.first_error == "Line 1 references an unknown account: acc-other"

    def test_inactive_account(self, validator, chart):
        entry = make_entry([("6999", 100, 0), ("1000", 0, 100)])
        result = validator.validate(entry, chart)
        assert result.first_error == "Line 1 references an inactive account: 6999 - Old Expenses"

    def test_zero_line(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("4000", 0, 100), ("6000", 0, 0)])
        result = validator.validate(entry, chart)
        assert result.first_error == "Line 3 has no debit or credit amount."

    def test_line_with_debit_and_credit_is_a_warning(self, validator, chart):
        """Both sides on one line does not block posting."""
        entry = make_entry([("1000", 100, 50), ("4000", 50, 100)])
        result = validator.validate(entry, chart)
        assert result.is_valid
        assert len(result.warnings) == 2

    def test_minimum_line_count(self, validator, chart):
        entry = make_entry([("1000", 0, 0)])
        result = validator.validate(entry, chart)
        assert result.errors[-1].message == "At least 2 account lines are required."

    def test_minimum_line_count_is_configurable(self, chart):
        validator = JournalEntryValidator(LedgerSettings(min_journal_lines=3))
        entry = make_entry([("1000", 100, 0), ("4000", 0, 100)])
        result = validator.validate(entry, chart)
        assert result.first_error == "At least 3 account lines are required."

    def test_without_chart_only_presence_is_checked(self, validator):
        entry = make_entry([("anything", 100, 0), ("else", 0, 100)])
        assert validator.validate(entry).is_valid


class TestValidatorBehaviour:
    """Determinism and the raising variant."""

    def test_validation_is_idempotent(self, validator, chart):
        """Same entry, same issues, same order."""
        entry = make_entry([("1000", 100, 0), ("", 0, 80)], description="")
        first = validator.validate(entry, chart)
        second = validator.validate(entry, chart)
        assert [i.message for i in first.issues] == [i.message for i in second.issues]
        assert first.first_error == second.first_error

    def test_validation_does_not_modify_entry(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("4000", 0, 80)])
        before = entry.model_dump()
        validator.validate(entry, chart)
        assert entry.model_dump() == before

    def test_ensure_valid_raises_with_result(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("4000", 0, 80)])
        with pytest.raises(JournalValidationError) as exc_info:
            validator.ensure_valid(entry, chart)
        assert exc_info.value.result.first_error == "Total debits must equal total credits."
        assert str(exc_info.value) == "Total debits must equal total credits."

    def test_friendly_summary_valid(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("4000", 0, 100)])
        summary = validator.get_user_friendly_summary(validator.validate(entry, chart))
        assert summary.startswith("✅")

    def test_friendly_summary_lists_errors(self, validator, chart):
        entry = make_entry([("1000", 100, 0), ("4000", 0, 80)])
        summary = validator.get_user_friendly_summary(validator.validate(entry, chart))
        assert "❌" in summary
        assert "Total debits must equal total credits." in summary
