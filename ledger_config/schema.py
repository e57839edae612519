"""
BooksConfig schema.

Frozen dataclasses the loader parses YAML into.  Each section maps to one
top-level YAML key; every field has a default so a set only needs to
spell out what it changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class PostingConfig:
    """Voucher validation settings."""

    balance_tolerance: Decimal = Decimal("0.01")
    money_decimal_places: int = 2


@dataclass(frozen=True)
class GstConfig:
    """GST classification and template defaults."""

    b2c_large_threshold: Decimal = Decimal("250000")
    default_tax_rate: Decimal = Decimal("18")


@dataclass(frozen=True)
class ReportingConfig:
    include_zero_balances: bool = False


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite://"
    echo: bool = False


@dataclass(frozen=True)
class BooksConfig:
    """The whole runtime configuration, as returned by get_active_config()."""

    config_id: str
    version: int
    posting: PostingConfig = field(default_factory=PostingConfig)
    gst: GstConfig = field(default_factory=GstConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    checksum: str = ""
