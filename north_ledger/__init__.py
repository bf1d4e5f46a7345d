"""
North Ledger - Source Package

Double-entry bookkeeping for small businesses and their accountants:
chart of accounts, balanced journal entries, and the statements built
from them.

DESIGN PRINCIPLES:
1. Every posted entry balances, or it is not posted
2. Posted entries are immutable; mistakes are voided or reversed
3. Statements are derived, never stored
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "North Ledger Team"
