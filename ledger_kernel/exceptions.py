"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to react to a closed period differently from an
unbalanced voucher without parsing message text.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA as instance attributes (not just a message string)

Example:
    try:
        ledger.post(company_id, VoucherType.JOURNAL, on_date, entries, actor_id)
    except ClosedPeriodError as e:
        api_response(code=e.code, year=e.year_name, date=e.on_date)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LedgerKernelError:

    LedgerKernelError (base)
    |
    +-- PostingError
    |   +-- UnbalancedVoucherError
    |   +-- InsufficientEntriesError
    |   +-- InvalidAmountError
    |
    +-- PeriodError
    |   +-- ClosedPeriodError
    |   +-- PeriodOverlapError
    |   +-- PeriodAlreadyClosedError
    |   +-- PeriodActivationError
    |   +-- PeriodInUseError
    |
    +-- NotFoundError
    |   +-- CompanyNotFoundError
    |   +-- GroupNotFoundError
    |   +-- LedgerNotFoundError
    |   |   +-- TaxLedgerNotFoundError
    |   +-- VoucherNotFoundError
    |   +-- VoucherEntryNotFoundError
    |   +-- FinancialYearNotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- PaymentNotFoundError
    |   +-- TemplateNotFoundError
    |   +-- StockItemNotFoundError
    |
    +-- ClassificationError
    |   +-- InvalidClassificationError
    |
    +-- ChartError
    |   +-- GroupInUseError
    |   +-- LedgerInUseError
    |
    +-- InvoiceError
    |   +-- InvalidInvoiceError
    |   +-- InvoiceHasPaymentsError
    |
    +-- PaymentError
    |   +-- OverPaymentError
    |
    +-- RecurringError
    |   +-- TemplateInactiveError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Posting         | UNBALANCED_VOUCHER          | |Dr - Cr| > 0.01
                | INSUFFICIENT_ENTRIES        | Fewer than two entries
                | INVALID_AMOUNT              | Entry/payment amount <= 0
----------------|-----------------------------|-----------------------------------------
Period          | CLOSED_PERIOD               | Date falls in a closed financial year
                | PERIOD_OVERLAP              | New year overlaps an existing one
                | PERIOD_ALREADY_CLOSED       | Closing a closed year
                | PERIOD_ACTIVATION_REJECTED  | Activating a closed year
                | PERIOD_IN_USE               | Deleting a year that holds vouchers
----------------|-----------------------------|-----------------------------------------
Not found       | *_NOT_FOUND                 | Unknown id, or id of another company
----------------|-----------------------------|-----------------------------------------
Classification  | INVALID_CLASSIFICATION      | Group type unexpected for an operation
----------------|-----------------------------|-----------------------------------------
Chart           | GROUP_IN_USE / LEDGER_IN_USE| Deleting referenced master data
----------------|-----------------------------|-----------------------------------------
Invoice         | INVALID_INVOICE             | Bad items, quantities or percentages
                | INVOICE_HAS_PAYMENTS        | Edit/delete with payments applied
----------------|-----------------------------|-----------------------------------------
Payment         | OVER_PAYMENT                | amount > outstanding + 0.01
----------------|-----------------------------|-----------------------------------------
Recurring       | TEMPLATE_INACTIVE           | Firing an inactive/expired template
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Row changed since it was read

===============================================================================
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Posting-related exceptions


class PostingError(LedgerKernelError):
    """Base exception for voucher posting errors."""

    code: str = "POSTING_ERROR"


class UnbalancedVoucherError(PostingError):
    """Voucher debits do not equal credits within tolerance."""

    code: str = "UNBALANCED_VOUCHER"

    def __init__(self, debits, credits, tolerance):
        self.debits = str(debits)
        self.credits = str(credits)
        self.tolerance = str(tolerance)
        super().__init__(
            f"Unbalanced voucher: debits={debits}, credits={credits} "
            f"(tolerance {tolerance})"
        )


class InsufficientEntriesError(PostingError):
    """A voucher needs at least two entries."""

    code: str = "INSUFFICIENT_ENTRIES"

    def __init__(self, entry_count: int):
        self.entry_count = entry_count
        super().__init__(
            f"A voucher needs at least two entries, got {entry_count}"
        )


class InvalidAmountError(PostingError):
    """Amount must be strictly positive."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount, context: str):
        self.amount = str(amount)
        self.context = context
        super().__init__(f"Invalid {context} amount {amount}: must be > 0")


# Period-related exceptions


class PeriodError(LedgerKernelError):
    """Base exception for financial-year errors."""

    code: str = "PERIOD_ERROR"


class ClosedPeriodError(PeriodError):
    """Attempted to write into a closed financial year."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, year_name: str, on_date):
        self.year_name = year_name
        self.on_date = str(on_date)
        super().__init__(
            f"Financial year {year_name} is closed; cannot post on {on_date}"
        )


class PeriodOverlapError(PeriodError):
    """New financial year overlaps an existing one."""

    code: str = "PERIOD_OVERLAP"

    def __init__(self, new_name: str, existing_name: str):
        self.new_name = new_name
        self.existing_name = existing_name
        super().__init__(
            f"Financial year {new_name} overlaps existing year {existing_name}"
        )


class PeriodAlreadyClosedError(PeriodError):
    """Financial year is already closed."""

    code: str = "PERIOD_ALREADY_CLOSED"

    def __init__(self, year_name: str):
        self.year_name = year_name
        super().__init__(f"Financial year {year_name} is already closed")


class PeriodActivationError(PeriodError):
    """Closed financial years cannot be activated."""

    code: str = "PERIOD_ACTIVATION_REJECTED"

    def __init__(self, year_name: str):
        self.year_name = year_name
        super().__init__(f"Cannot activate closed financial year {year_name}")


class PeriodInUseError(PeriodError):
    """Financial year still holds vouchers."""

    code: str = "PERIOD_IN_USE"

    def __init__(self, year_name: str, voucher_count: int):
        self.year_name = year_name
        self.voucher_count = voucher_count
        super().__init__(
            f"Cannot delete financial year {year_name}: "
            f"{voucher_count} voucher(s) are dated inside it"
        )


# Lookup failures


class NotFoundError(LedgerKernelError):
    """Base exception for unresolvable references."""

    code: str = "NOT_FOUND"
    entity: str = "Record"

    def __init__(self, entity_id):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity} not found: {entity_id}")


class CompanyNotFoundError(NotFoundError):
    code: str = "COMPANY_NOT_FOUND"
    entity = "Company"


class GroupNotFoundError(NotFoundError):
    code: str = "GROUP_NOT_FOUND"
    entity = "Group"


class LedgerNotFoundError(NotFoundError):
    code: str = "LEDGER_NOT_FOUND"
    entity = "Ledger"


class TaxLedgerNotFoundError(LedgerNotFoundError):
    """No ledger of the required tax kind exists for the company."""

    code: str = "TAX_LEDGER_NOT_FOUND"

    def __init__(self, company_id, tax_kind: str):
        self.company_id = str(company_id)
        self.tax_kind = tax_kind
        self.entity_id = tax_kind
        LedgerKernelError.__init__(
            self, f"No {tax_kind} ledger configured for company {company_id}"
        )


class VoucherNotFoundError(NotFoundError):
    code: str = "VOUCHER_NOT_FOUND"
    entity = "Voucher"


class VoucherEntryNotFoundError(NotFoundError):
    code: str = "VOUCHER_ENTRY_NOT_FOUND"
    entity = "Voucher entry"


class FinancialYearNotFoundError(NotFoundError):
    code: str = "FINANCIAL_YEAR_NOT_FOUND"
    entity = "Financial year"


class InvoiceNotFoundError(NotFoundError):
    code: str = "INVOICE_NOT_FOUND"
    entity = "Invoice"


class PaymentNotFoundError(NotFoundError):
    code: str = "PAYMENT_NOT_FOUND"
    entity = "Payment"


class TemplateNotFoundError(NotFoundError):
    code: str = "TEMPLATE_NOT_FOUND"
    entity = "Recurring template"


class StockItemNotFoundError(NotFoundError):
    code: str = "STOCK_ITEM_NOT_FOUND"
    entity = "Stock item"


# Classification


class ClassificationError(LedgerKernelError):
    """Base exception for group classification problems."""

    code: str = "CLASSIFICATION_ERROR"


class InvalidClassificationError(ClassificationError):
    """Ledger group type is missing or unexpected for the operation."""

    code: str = "INVALID_CLASSIFICATION"

    def __init__(self, ledger_id, group_type, expected: str):
        self.ledger_id = str(ledger_id)
        self.group_type = None if group_type is None else str(group_type)
        self.expected = expected
        super().__init__(
            f"Ledger {ledger_id} has classification {group_type!s}; "
            f"expected {expected}"
        )


# Chart of accounts


class ChartError(LedgerKernelError):
    """Base exception for chart-of-accounts maintenance errors."""

    code: str = "CHART_ERROR"


class GroupInUseError(ChartError):
    """Group still has ledgers."""

    code: str = "GROUP_IN_USE"

    def __init__(self, group_id, ledger_count: int):
        self.group_id = str(group_id)
        self.ledger_count = ledger_count
        super().__init__(
            f"Cannot delete group {group_id}: {ledger_count} ledger(s) reference it"
        )


class LedgerInUseError(ChartError):
    """Ledger is referenced by entries, invoices or templates."""

    code: str = "LEDGER_IN_USE"

    def __init__(self, ledger_id, reason: str):
        self.ledger_id = str(ledger_id)
        self.reason = reason
        super().__init__(f"Cannot delete ledger {ledger_id}: {reason}")


# Invoices and payments


class InvoiceError(LedgerKernelError):
    """Base exception for invoice errors."""

    code: str = "INVOICE_ERROR"


class InvalidInvoiceError(InvoiceError):
    """Invoice or line item failed validation."""

    code: str = "INVALID_INVOICE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid invoice: {reason}")


class InvoiceHasPaymentsError(InvoiceError):
    """Invoice has payments and the operation would orphan them."""

    code: str = "INVOICE_HAS_PAYMENTS"

    def __init__(self, invoice_id, payment_count: int, operation: str):
        self.invoice_id = str(invoice_id)
        self.payment_count = payment_count
        self.operation = operation
        super().__init__(
            f"Cannot {operation} invoice {invoice_id}: "
            f"{payment_count} payment(s) applied"
        )


class PaymentError(LedgerKernelError):
    """Base exception for payment errors."""

    code: str = "PAYMENT_ERROR"


class OverPaymentError(PaymentError):
    """Payment exceeds the invoice's outstanding amount."""

    code: str = "OVER_PAYMENT"

    def __init__(self, invoice_id, amount, outstanding):
        self.invoice_id = str(invoice_id)
        self.amount = str(amount)
        self.outstanding = str(outstanding)
        super().__init__(
            f"Payment {amount} exceeds outstanding {outstanding} "
            f"on invoice {invoice_id}"
        )


# Recurring invoices


class RecurringError(LedgerKernelError):
    """Base exception for recurring invoice errors."""

    code: str = "RECURRING_ERROR"


class TemplateInactiveError(RecurringError):
    """Template is inactive or past its end date."""

    code: str = "TEMPLATE_INACTIVE"

    def __init__(self, template_id, reason: str):
        self.template_id = str(template_id)
        self.reason = reason
        super().__init__(f"Recurring template {template_id} cannot fire: {reason}")


# Concurrency


class ConcurrencyError(LedgerKernelError):
    """Base exception for concurrency conflicts."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Row was modified by another transaction since it was read."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id, expected_version, actual_version):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"{entity_type} {entity_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
