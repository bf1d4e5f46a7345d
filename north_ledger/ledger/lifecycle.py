"""
Journal entry lifecycle.

    DRAFT --post--> POSTED --void--> VOID
      |                                ^
      +-------------void---------------+

A POSTED entry is never edited. It is undone in one of two ways:

- voided, which takes it out of every report;
- reversed, which keeps it POSTED and records a POSTED reversing entry
  that swaps every debit and credit. The pair nets to zero and the
  original is linked to its reversal through reversed_by_entry_id.

A reversed entry is never voided. A reversing entry is voided only to
withdraw it when linking it to the original fails.

Functions here return new JournalEntry objects; the input is left as is.
"""

import random
from datetime import date
from typing import Optional
from uuid import UUID

from north_ledger.ledger.errors import ImmutableEntryError, InvalidStatusTransitionError
from north_ledger.models.ledger import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    utc_now,
)


ALLOWED_TRANSITIONS: dict[JournalEntryStatus, frozenset[JournalEntryStatus]] = {
    JournalEntryStatus.DRAFT: frozenset({JournalEntryStatus.POSTED, JournalEntryStatus.VOID}),
    JournalEntryStatus.POSTED: frozenset({JournalEntryStatus.VOID}),
    JournalEntryStatus.VOID: frozenset(),
}


def generate_reference(on_date: date, prefix: str = "JE", rng: Optional[random.Random] = None) -> str:
    """Reference like JE-20250314-042."""
    rng = rng or random
    return f"{prefix}-{on_date.strftime('%Y%m%d')}-{rng.randint(0, 999):03d}"


def can_transition(current: JournalEntryStatus, target: JournalEntryStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_editable(entry: JournalEntry) -> None:
    """Raise unless the entry is still a draft."""
    if entry.status != JournalEntryStatus.DRAFT:
        raise ImmutableEntryError(
            f"Journal entry {entry.id} is {entry.status.value} and cannot be modified"
        )


def _transition(entry: JournalEntry, target: JournalEntryStatus, **changes) -> JournalEntry:
    if not can_transition(entry.status, target):
        raise InvalidStatusTransitionError(
            f"Cannot move journal entry {entry.id} from "
            f"{entry.status.value} to {target.value}"
        )
    now = utc_now()
    return entry.model_copy(update={"status": target, "updated_at": now, **changes})


def mark_posted(entry: JournalEntry) -> JournalEntry:
    """
    Move a draft to POSTED.

    Does not validate. Callers must run JournalEntryValidator first.
    """
    return _transition(entry, JournalEntryStatus.POSTED, posted_at=utc_now())


def mark_void(entry: JournalEntry, voided_by: str) -> JournalEntry:
    if entry.reversed_by_entry_id is not None:
        raise InvalidStatusTransitionError(
            f"Journal entry {entry.id} was reversed by {entry.reversed_by_entry_id} "
            f"and cannot be voided"
        )
    return _transition(
        entry,
        JournalEntryStatus.VOID,
        voided_at=utc_now(),
        voided_by=voided_by,
    )


def build_reversal(
    entry: JournalEntry,
    created_by: str,
    on_date: Optional[date] = None,
    reference: Optional[str] = None,
) -> JournalEntry:
    """
    Create a posted entry that cancels out a posted entry.

    Every line's debit and credit are swapped, so the pair nets to zero on
    every account.
    """
    if entry.status != JournalEntryStatus.POSTED:
        raise InvalidStatusTransitionError(
            f"Only posted entries can be reversed; {entry.id} is {entry.status.value}"
        )

    lines = [
        JournalEntryLine(
            account_id=line.account_id,
            account_code=line.account_code,
            account_name=line.account_name,
            description=line.description,
            debit_amount=line.credit_amount,
            credit_amount=line.debit_amount,
        )
        for line in entry.lines
    ]
    now = utc_now()
    description = f"Reversal of {entry.reference or entry.id}: {entry.description}"

    return JournalEntry(
        date=on_date or now.date(),
        reference=reference,
        description=description[:500],
        client_id=entry.client_id,
        lines=lines,
        status=JournalEntryStatus.POSTED,
        created_by=created_by,
        created_at=now,
        posted_at=now,
        reverses_entry_id=entry.id,
    )


def mark_reversed(entry: JournalEntry, reversal_id: UUID) -> JournalEntry:
    """Link a posted entry to the reversing entry that cancels it. Status stays POSTED."""
    if entry.status != JournalEntryStatus.POSTED:
        raise InvalidStatusTransitionError(
            f"Only posted entries can be reversed; {entry.id} is {entry.status.value}"
        )
    if entry.in_reversal_pair:
        raise InvalidStatusTransitionError(
            f"Journal entry {entry.id} is already part of a reversal"
        )
    return entry.model_copy(update={"reversed_by_entry_id": reversal_id, "updated_at": utc_now()})


def check_status_change(stored: JournalEntry, updated: JournalEntry) -> None:
    """
    Raise InvalidStatusTransitionError unless `updated` is a legal next
    state of `stored`.

    Storage backends call this before writing, so the lifecycle holds no
    matter which caller asks for the change. Besides the status
    transitions, a POSTED entry may stay POSTED only to record the
    reversal that cancels it.
    """
    if updated.status == stored.status:
        if (
            stored.status == JournalEntryStatus.POSTED
            and stored.reversed_by_entry_id is None
            and updated.reversed_by_entry_id is not None
        ):
            return
        raise InvalidStatusTransitionError(
            f"Journal entry {stored.id} is already {stored.status.value}"
        )

    if not can_transition(stored.status, updated.status):
        raise InvalidStatusTransitionError(
            f"Cannot move journal entry {stored.id} from "
            f"{stored.status.value} to {updated.status.value}"
        )
    if updated.status == JournalEntryStatus.VOID and stored.reversed_by_entry_id is not None:
        raise InvalidStatusTransitionError(
            f"Journal entry {stored.id} was reversed and cannot be voided"
        )
