"""
Banking Module (``ledger_modules.banking``).

Bank reconciliation of cash and bank ledgers against the dates the bank
reflected each entry.
"""

from ledger_modules.banking.models import ReconciliationRow
from ledger_modules.banking.service import ReconciliationTracker

__all__ = ["ReconciliationRow", "ReconciliationTracker"]
