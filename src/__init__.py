"""
Notion Ledger - Source Package

A personal finance tracker that keeps its data in the user's own Notion
databases (Transactions, Accounts, Categories).

DESIGN PRINCIPLES:
1. Notion is the system of record; we hold no financial state
2. Tolerate hand-edited schemas: resolve properties by role, not by name
3. Fail early, fail visibly, with a hint the user can act on
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
