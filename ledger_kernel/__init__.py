"""
Ledger Kernel

The double-entry core of the bookkeeping backend:
- Balanced, atomic voucher posting
- Financial-year period control
- Balances derived from entries, never cached
- Per-company tenant partitioning
"""

__version__ = "0.1.0"
