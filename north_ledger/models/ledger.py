"""
Core Ledger Models for North Ledger

These models define the strict schemas for everything the ledger reads
and writes:
1. Chart of accounts entries (cash and ledger accounts)
2. Journal entries and their debit/credit lines
3. Single-sided transactions, fixed assets, liabilities and budgets
4. The canonical user profile and the session passed into services

DESIGN DECISION: Every external row is parsed into one of these models
before use. A row that does not fit the schema fails loudly at the
data-access boundary instead of leaking loosely-typed dicts into the
business logic.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


ZERO = Decimal("0")


def utc_now() -> datetime:
    """Timezone-aware current time, used for all generated timestamps."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Account classification.

    Ledger accounts use the five accounting classes. Cash accounts
    (the ones users see on their accounts screen) use the bank-style
    types and are treated as assets, except credit which is a liability.
    """
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"

    @property
    def is_cash(self) -> bool:
        return self in _CASH_TYPES

    @property
    def is_current_asset(self) -> bool:
        """Checking and savings balances count as current assets."""
        return self in (AccountType.CHECKING, AccountType.SAVINGS)

    @property
    def normal_balance(self) -> "NormalBalance":
        if self in _DEBIT_NORMAL_TYPES:
            return NormalBalance.DEBIT
        return NormalBalance.CREDIT


class NormalBalance(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


_CASH_TYPES = frozenset({
    AccountType.CHECKING,
    AccountType.SAVINGS,
    AccountType.CREDIT,
    AccountType.INVESTMENT,
})

_DEBIT_NORMAL_TYPES = frozenset({
    AccountType.ASSET,
    AccountType.EXPENSE,
    AccountType.CHECKING,
    AccountType.SAVINGS,
    AccountType.INVESTMENT,
})


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    SEK = "SEK"


class JournalEntryStatus(str, Enum):
    """
    Journal entry lifecycle status.

    CRITICAL: A POSTED entry is immutable. It can only be superseded
    by voiding it.
    """
    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    CLEARED = "cleared"
    CANCELLED = "cancelled"
    RECONCILED = "reconciled"


class UserRole(str, Enum):
    MEMBER = "member"
    PREMIUM = "premium"
    CPA = "cpa"
    SUPPORT = "support"
    ADMIN = "admin"
    CLIENT = "client"


# =============================================================================
# CHART OF ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """
    A named, coded account owned by a user or client.

    Identity is immutable once created. The balance only changes through
    posted transactions or journal lines, never by direct edit.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique account ID"
    )
    code: Optional[str] = Field(
        default=None,
        max_length=20,
        description="Human-readable account code (e.g. '1000')"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Account name"
    )
    type: AccountType
    balance: Decimal = Field(
        default=ZERO,
        description="Current balance in the account currency"
    )
    currency: Currency = Currency.USD
    owner_id: str = Field(
        ...,
        min_length=1,
        description="User or client the account belongs to"
    )
    is_active: bool = True
    parent_id: Optional[str] = Field(
        default=None,
        description="Parent account for hierarchical charts"
    )

    @property
    def label(self) -> str:
        """'1000 - Cash' style label for pickers and reports."""
        if self.code:
            return f"{self.code} - {self.name}"
        return self.name


# =============================================================================
# JOURNAL ENTRIES
# =============================================================================

class JournalEntryLine(BaseModel):
    """
    One side of a double-entry posting.

    account_id may be empty while the line is still being edited on a
    form. The validator rejects such lines before anything is persisted.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    account_id: str = Field(
        default="",
        description="Account reference (id or code)"
    )
    account_code: Optional[str] = None
    account_name: Optional[str] = None
    description: Optional[str] = Field(
        default=None,
        max_length=500
    )
    debit_amount: Decimal = Field(
        default=ZERO,
        ge=0,
        decimal_places=2,
    )
    credit_amount: Decimal = Field(
        default=ZERO,
        ge=0,
        decimal_places=2,
    )

    @field_validator("debit_amount", "credit_amount", mode="before")
    @classmethod
    def round_float_amount(cls, v: Any) -> Any:
        """
        Floats are rounded half-up to the cent.

        Decimal and string input must already be exact to the cent and is
        rejected otherwise.
        """
        if isinstance(v, float):
            return Decimal(str(v)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return v

    @property
    def is_debit(self) -> bool:
        return self.debit_amount > 0 and self.credit_amount == 0

    @property
    def is_credit(self) -> bool:
        return self.credit_amount > 0 and self.debit_amount == 0

    @property
    def has_amount(self) -> bool:
        return self.debit_amount > 0 or self.credit_amount > 0


class JournalEntry(BaseModel):
    """
    An atomic set of debit/credit postings.

    The model itself does not require the entry to balance: drafts may be
    saved half-finished. Balance is enforced by JournalEntryValidator
    before the entry may become POSTED.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entry ID"
    )
    date: date
    reference: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Entry reference, e.g. JE-20250101-042"
    )
    description: str = Field(
        default="",
        max_length=500
    )
    client_id: str = Field(
        ...,
        min_length=1,
        description="User or client the entry belongs to"
    )
    lines: list[JournalEntryLine] = Field(default_factory=list)
    status: JournalEntryStatus = JournalEntryStatus.DRAFT
    created_by: str = Field(
        ...,
        min_length=1,
        description="User who created the entry (e.g. the CPA)"
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
    posted_at: Optional[datetime] = None
    voided_at: Optional[datetime] = None
    voided_by: Optional[str] = None

    # Set on a reversing entry, pointing at the entry it cancels
    reverses_entry_id: Optional[UUID] = None
    # Set on a posted entry once a reversing entry cancels it
    reversed_by_entry_id: Optional[UUID] = None

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return _cents(self.total_debit) == _cents(self.total_credit)

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    @property
    def in_reversal_pair(self) -> bool:
        return self.reverses_entry_id is not None or self.reversed_by_entry_id is not None


def _cents(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"))


# =============================================================================
# TRANSACTIONS, ASSETS, LIABILITIES, BUDGETS
# =============================================================================

class Transaction(BaseModel):
    """
    A single-sided record used by the budgeting and reporting screens.

    Distinct from JournalEntry: expenses may be stored with a negative
    amount, and nothing reconciles transactions against journal lines.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    owner_id: str = Field(..., min_length=1)
    account_id: Optional[str] = None
    category: str = Field(
        default="Other",
        max_length=100
    )
    amount: Decimal
    type: TransactionType
    date: date
    status: TransactionStatus = TransactionStatus.CLEARED
    description: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v: Any) -> Any:
        """Blank or missing category names fall back to 'Other'."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return "Other"
        return v

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)


class FixedAsset(BaseModel):
    """Non-cash asset (equipment, property) carried at a fixed value."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    owner_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    value: Decimal = Field(default=ZERO)


class Liability(BaseModel):
    """Outstanding obligation (loan, card balance) owed by the owner."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    owner_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    balance: Decimal = Field(default=ZERO)


class Budget(BaseModel):
    """
    Spending allocation for one category over a period.

    spent_amount is derived from expense transactions; see
    reports.statements.sync_budget_spending.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    owner_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    allocated_amount: Decimal = Field(default=ZERO, ge=0)
    spent_amount: Decimal = Field(default=ZERO, ge=0)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_period(self) -> "Budget":
        if self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self

    @property
    def remaining_amount(self) -> Decimal:
        return self.allocated_amount - self.spent_amount

    @property
    def utilization(self) -> float:
        """Spent share of the allocation (0.0 when nothing is allocated)."""
        if self.allocated_amount == 0:
            return 0.0
        return float(self.spent_amount / self.allocated_amount)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


# =============================================================================
# USERS & SESSIONS
# =============================================================================

class Profile(BaseModel):
    """
    Canonical user profile.

    Rows coming from storage carry the name under different keys
    (full_name, display_name, first/last name). from_record() resolves
    them once so the rest of the code only ever reads display_name.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    display_name: str = Field(..., min_length=1)
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.MEMBER

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Profile":
        """Build a Profile from a raw storage row."""
        email = str(record.get("email") or "").strip()
        first = str(record.get("first_name") or "").strip()
        last = str(record.get("last_name") or "").strip()

        candidates = [
            record.get("display_name"),
            record.get("full_name"),
            f"{first} {last}".strip(),
            email.split("@")[0] if email else None,
        ]
        display_name = next(
            (str(c).strip() for c in candidates if c and str(c).strip()),
            "",
        )

        return cls(
            id=str(record.get("id") or ""),
            email=email,
            display_name=display_name,
            avatar_url=record.get("avatar_url") or None,
            role=record.get("role") or UserRole.MEMBER,
        )


class LedgerSession(BaseModel):
    """
    Who is acting and on whose books.

    Passed explicitly into every flow and service call. A CPA working on
    a client's ledger has user_id != client_id; everyone else works on
    their own books.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    client_id: Optional[str] = None
    role: UserRole = UserRole.MEMBER

    @property
    def scope_id(self) -> str:
        return self.client_id or self.user_id


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue (e.g. 'description', 'lines[1]')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g. 'missing', 'unbalanced', 'zero_total')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class JournalValidationResult(BaseModel):
    """
    Result of validating a proposed journal entry.

    Only error-level issues block submission. Warnings are shown to the
    user next to the form but do not stop posting.
    """

    entry_id: UUID
    validated_at: datetime = Field(default_factory=utc_now)

    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def first_error(self) -> Optional[str]:
        """The message shown in the inline alert when submission is blocked."""
        errors = self.errors
        return errors[0].message if errors else None
