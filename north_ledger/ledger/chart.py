"""
Chart of Accounts lookup.

A read-only view over the accounts one user or client owns. The validator
uses it to resolve journal line references; the statement aggregator uses
it to classify accounts by type.
"""

from typing import Iterable, Iterator, Optional

from north_ledger.ledger.errors import AccountNotFoundError
from north_ledger.models.ledger import Account, AccountType


class ChartOfAccounts:
    """
    Accounts for a single scope, keyed by id and by code.

    Accounts owned by any other scope are dropped on construction, so a
    chart built from a mixed list can never resolve someone else's
    account.
    """

    def __init__(self, accounts: Iterable[Account], scope_id: str):
        self._scope_id = scope_id
        self._by_id: dict[str, Account] = {}
        self._by_code: dict[str, Account] = {}

        for account in accounts:
            if account.owner_id != scope_id:
                continue
            self._by_id[account.id] = account
            if account.code:
                self._by_code[account.code] = account

    @property
    def scope_id(self) -> str:
        return self._scope_id

    def get(self, ref: Optional[str]) -> Optional[Account]:
        """Resolve an account by id, then by code."""
        if not ref:
            return None
        ref = ref.strip()
        return self._by_id.get(ref) or self._by_code.get(ref)

    def require(self, ref: Optional[str]) -> Account:
        account = self.get(ref)
        if account is None:
            raise AccountNotFoundError(
                f"Account not found in chart for {self._scope_id}: {ref!r}"
            )
        return account

    def active(self) -> list[Account]:
        """Active accounts ordered by code; uncoded accounts last, by name."""
        return sorted(
            (a for a in self._by_id.values() if a.is_active),
            key=lambda a: (a.code is None, a.code or "", a.name),
        )

    def by_type(self, *types: AccountType) -> list[Account]:
        wanted = set(types)
        return [a for a in self._by_id.values() if a.type in wanted]

    def __contains__(self, ref: object) -> bool:
        return isinstance(ref, str) and self.get(ref) is not None

    def __iter__(self) -> Iterator[Account]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)
