"""
Reporting Configuration Schema.

Report options the ReportEngine is built with.  ``from_books_config``
lifts the relevant values out of ``ledger_config.BooksConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Self

from ledger_kernel.db.types import BALANCE_TOLERANCE
from ledger_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from ledger_config.schema import BooksConfig

logger = get_logger("modules.reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.
    """

    # Whether ledgers with a zero balance appear as rows
    include_zero_balances: bool = False

    # Inter-state B2C invoices at or above this total are "large"
    b2c_large_threshold: Decimal = Decimal("250000")

    # Rounding precision for report amounts
    display_precision: int = 2

    # Trial balance Dr/Cr comparison epsilon
    balance_tolerance: Decimal = BALANCE_TOLERANCE

    def __post_init__(self):
        if self.display_precision < 0:
            raise ValueError("display_precision cannot be negative")
        if self.b2c_large_threshold < 0:
            raise ValueError("b2c_large_threshold cannot be negative")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_books_config(cls, config: BooksConfig) -> Self:
        logger.info(
            "reporting_config_loaded",
            extra={"config_id": config.config_id, "version": config.version},
        )
        return cls(
            include_zero_balances=config.reporting.include_zero_balances,
            b2c_large_threshold=config.gst.b2c_large_threshold,
            display_precision=config.posting.money_decimal_places,
            balance_tolerance=config.posting.balance_tolerance,
        )
