"""
Invoice Posting Profiles -- which side each ledger takes, per invoice type.

Profiles:
    SALES        party Dr, sales Cr, output tax Cr, stock out
    PURCHASE     party Cr, purchase Dr, input tax Dr, stock in
    CREDIT_NOTE  party Cr, account Dr, tax Dr, stock back in
    DEBIT_NOTE   party Dr, account Cr, tax Cr, stock back out

Posting dispatches on this table; services never branch on invoice type.
"""

from dataclasses import dataclass

from ledger_kernel.domain.sides import EntrySide
from ledger_kernel.models.account import LedgerKind
from ledger_kernel.models.voucher import VoucherType
from ledger_modules.invoicing.models import InvoiceType, PaymentMode


@dataclass(frozen=True)
class PostingDirection:
    """Entry sides and stock sign for one invoice type."""

    voucher_type: VoucherType
    party_side: EntrySide
    account_side: EntrySide
    tax_side: EntrySide
    stock_direction: int
    number_prefix: str

    @property
    def settlement_voucher_type(self) -> VoucherType:
        """RECEIPT when money comes in from a debtor party, else PAYMENT."""
        return VoucherType.RECEIPT if self.party_side == EntrySide.DR else VoucherType.PAYMENT


POSTING_DIRECTIONS: dict[InvoiceType, PostingDirection] = {
    InvoiceType.SALES: PostingDirection(
        voucher_type=VoucherType.SALES,
        party_side=EntrySide.DR,
        account_side=EntrySide.CR,
        tax_side=EntrySide.CR,
        stock_direction=-1,
        number_prefix="INV",
    ),
    InvoiceType.PURCHASE: PostingDirection(
        voucher_type=VoucherType.PURCHASE,
        party_side=EntrySide.CR,
        account_side=EntrySide.DR,
        tax_side=EntrySide.DR,
        stock_direction=1,
        number_prefix="PUR",
    ),
    InvoiceType.CREDIT_NOTE: PostingDirection(
        voucher_type=VoucherType.CREDIT_NOTE,
        party_side=EntrySide.CR,
        account_side=EntrySide.DR,
        tax_side=EntrySide.DR,
        stock_direction=1,
        number_prefix="CN",
    ),
    InvoiceType.DEBIT_NOTE: PostingDirection(
        voucher_type=VoucherType.DEBIT_NOTE,
        party_side=EntrySide.DR,
        account_side=EntrySide.CR,
        tax_side=EntrySide.CR,
        stock_direction=-1,
        number_prefix="DN",
    ),
}

TAX_LEDGER_KINDS: tuple[tuple[str, LedgerKind], ...] = (
    ("cgst_total", LedgerKind.CGST),
    ("sgst_total", LedgerKind.SGST),
    ("igst_total", LedgerKind.IGST),
)

SETTLEMENT_KIND_BY_MODE: dict[PaymentMode, LedgerKind] = {
    PaymentMode.CASH: LedgerKind.CASH,
    PaymentMode.BANK: LedgerKind.BANK,
    PaymentMode.CHEQUE: LedgerKind.BANK,
    PaymentMode.UPI: LedgerKind.BANK,
    PaymentMode.CARD: LedgerKind.BANK,
}


def direction_for(invoice_type: InvoiceType) -> PostingDirection:
    return POSTING_DIRECTIONS[InvoiceType(invoice_type)]
