"""
Tax Engine - GST split into CGST, SGST and IGST.

Pure functions with no I/O.  States and rates are parameters.

A supply is intra-state when the supplier's state and the party's place of
supply are both known and equal: the tax is shared equally between CGST
and SGST.  Anything else (either state missing, or the states differ) is
treated as inter-state and the whole tax goes to IGST.

Usage:
    from decimal import Decimal
    from ledger_engines.tax import split

    result = split(Decimal("1000"), Decimal("18"), "MH", "MH")
    result.cgst, result.sgst, result.igst   # 90.00, 90.00, 0.00
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ledger_engines.tracer import traced_engine
from ledger_kernel.db.types import HUNDRED, MONEY_DECIMAL_PLACES, ZERO, round_money

TWO = Decimal("2")


@dataclass(frozen=True)
class GstSplit:
    """
    Tax components for one taxable amount.

    Either cgst == sgst and igst == 0 (intra-state), or cgst == sgst == 0.
    """

    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    is_interstate: bool

    @property
    def total(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


def _normalize_state(state: str | None) -> str:
    return (state or "").strip().casefold()


def is_interstate(company_state: str | None, party_state: str | None) -> bool:
    """True unless both states are known and equal (case-insensitive)."""
    company = _normalize_state(company_state)
    party = _normalize_state(party_state)
    return not company or not party or company != party


@traced_engine("gst_split", "1.0")
def split(
    taxable_amount: Decimal,
    rate_percent: Decimal,
    company_state: str | None,
    party_state: str | None,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> GstSplit:
    """
    Split the tax on one taxable amount.

    Each component is rounded half-up to the currency minor unit.  Callers
    sum line-level results instead of re-deriving tax from an aggregate
    taxable value.

    Raises:
        TypeError: float arguments.
        ValueError: negative rate.
    """
    if isinstance(taxable_amount, float) or isinstance(rate_percent, float):
        raise TypeError("Tax engine requires Decimal amounts and rates")
    taxable_amount = Decimal(taxable_amount)
    rate_percent = Decimal(rate_percent)
    if rate_percent < ZERO:
        raise ValueError(f"Tax rate cannot be negative: {rate_percent}")

    tax = taxable_amount * rate_percent / HUNDRED
    if is_interstate(company_state, party_state):
        zero = round_money(ZERO, decimal_places)
        return GstSplit(
            cgst=zero,
            sgst=zero,
            igst=round_money(tax, decimal_places),
            is_interstate=True,
        )

    half = round_money(tax / TWO, decimal_places)
    return GstSplit(
        cgst=half,
        sgst=half,
        igst=round_money(ZERO, decimal_places),
        is_interstate=False,
    )
