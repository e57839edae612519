"""
Ledger Modules.

Thin orchestration layers over the Ledger Kernel and Engines.
Each module contains domain models (frozen dataclasses), ORM persistence
where it owns tables, and a service facade:

- Invoicing: sales/purchase invoices, credit/debit notes, payments, stock
- Reporting: trial balance, profit and loss, balance sheet, GSTR-1, GSTR-3B
- Banking: bank reconciliation of cash and bank ledgers
- Recurring: invoice templates fired on a schedule

Posting always goes through ``ledger_kernel.services.VoucherLedger``.
"""
