"""
Journal Entry Validation

DESIGN DECISION: Validation is a synchronous, local check that runs
before any network call. It never touches storage and keeps no state,
so validating the same entry twice always produces the same issues in
the same order.

Checks, in the order their messages are reported:
1. Description present
2. Total debits equal total credits (after rounding to cents)
3. Total is not zero
4. Every line has an account, known to the chart when one is supplied
5. Every line carries a debit or a credit amount
6. Minimum number of lines

IMPORTANT: Validation NEVER silently fixes an entry. Lines are not
dropped, amounts are not rounded into balance. Issues are reported
for the user to correct.
"""

from decimal import Decimal
from typing import Optional

from north_ledger.config import LedgerSettings, get_settings
from north_ledger.ledger.chart import ChartOfAccounts
from north_ledger.ledger.errors import JournalValidationError
from north_ledger.models.ledger import (
    JournalEntry,
    JournalValidationResult,
    ValidationIssue,
)


class JournalEntryValidator:
    """
    Enforces the double-entry rules on a proposed journal entry.

    All-or-nothing: an entry with any error-level issue must not be
    persisted. Warnings are surfaced but do not block posting.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    def _round(self, value: Decimal) -> Decimal:
        return value.quantize(self._settings.balance_precision)

    def _check_description(self, entry: JournalEntry) -> list[ValidationIssue]:
        if entry.description:
            return []
        return [ValidationIssue(
            field="description",
            issue_type="missing",
            message="Description is required.",
            severity="error",
            suggested_fix="Describe what this entry records",
        )]

    def _check_totals(self, entry: JournalEntry) -> list[ValidationIssue]:
        issues = []
        total_debit = self._round(entry.total_debit)
        total_credit = self._round(entry.total_credit)

        if total_debit != total_credit:
            issues.append(ValidationIssue(
                field="lines",
                issue_type="unbalanced",
                message="Total debits must equal total credits.",
                severity="error",
                suggested_fix=(
                    f"Debits are {total_debit:,.2f} and credits are "
                    f"{total_credit:,.2f}; difference {abs(total_debit - total_credit):,.2f}"
                ),
            ))

        if total_debit == 0:
            issues.append(ValidationIssue(
                field="lines",
                issue_type="zero_total",
                message="Journal entry total cannot be zero.",
                severity="error",
                suggested_fix="Enter the amounts being moved between accounts",
            ))

        return issues

    def _check_lines(
        self,
        entry: JournalEntry,
        chart: Optional[ChartOfAccounts],
    ) -> list[ValidationIssue]:
        issues = []

        for number, line in enumerate(entry.lines, start=1):
            field = f"lines[{number}]"

            if not line.account_id:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing_account",
                    message=f"Line {number} is missing an account.",
                    severity="error",
                    suggested_fix="Pick an account from the chart of accounts",
                ))
            elif chart is not None:
                account = chart.get(line.account_id)
                if account is None:
                    issues.append(ValidationIssue(
                        field=field,
                        issue_type="unknown_account",
                        message=f"Line {number} references an unknown account: {line.account_id}",
                        severity="error",
                    ))
                elif not account.is_active:
                    issues.append(ValidationIssue(
                        field=field,
                        issue_type="inactive_account",
                        message=f"Line {number} references an inactive account: {account.label}",
                        severity="error",
                    ))

            if not line.has_amount:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="zero_line",
                    message=f"Line {number} has no debit or credit amount.",
                    severity="error",
                    suggested_fix="Enter an amount or remove the line",
                ))
            elif line.debit_amount > 0 and line.credit_amount > 0:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="debit_and_credit",
                    message=f"Line {number} has both a debit and a credit amount.",
                    severity="warning",
                    suggested_fix="Split it into one debit line and one credit line",
                ))

        return issues

    def _check_line_count(self, entry: JournalEntry) -> list[ValidationIssue]:
        minimum = self._settings.min_journal_lines
        if len(entry.lines) >= minimum:
            return []
        return [ValidationIssue(
            field="lines",
            issue_type="too_few_lines",
            message=f"At least {minimum} account lines are required.",
            severity="error",
        )]

    def validate(
        self,
        entry: JournalEntry,
        chart: Optional[ChartOfAccounts] = None,
    ) -> JournalValidationResult:
        """
        Validate a proposed journal entry.

        Args:
            entry: The entry as captured from the form
            chart: Chart of accounts to resolve line references against.
                   If None, only presence of an account reference is checked.

        Returns:
            JournalValidationResult with every issue found
        """
        issues: list[ValidationIssue] = []
        issues.extend(self._check_description(entry))
        issues.extend(self._check_totals(entry))
        issues.extend(self._check_lines(entry, chart))
        issues.extend(self._check_line_count(entry))

        return JournalValidationResult(
            entry_id=entry.id,
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            issues=issues,
        )

    def ensure_valid(
        self,
        entry: JournalEntry,
        chart: Optional[ChartOfAccounts] = None,
    ) -> JournalValidationResult:
        """Validate and raise JournalValidationError on any error-level issue."""
        result = self.validate(entry, chart)
        if not result.is_valid:
            raise JournalValidationError(result)
        return result

    def get_user_friendly_summary(
        self,
        result: JournalValidationResult,
    ) -> str:
        """
        Generate the inline message shown above the entry form.
        """
        if result.is_valid and not result.warnings:
            return "✅ Entry is balanced and ready to post."

        lines = []

        if result.has_errors:
            lines.append("❌ This entry can't be posted yet:")
            for issue in result.errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
