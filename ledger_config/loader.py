"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``ledger_config.schema`` dataclasses.  Runtime callers go through
``ledger_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Amounts are parsed as ``Decimal`` from their string form, never via
  float.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range or non-numeric values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    BooksConfig,
    DatabaseConfig,
    GstConfig,
    PostingConfig,
    ReportingConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _non_negative(value: Decimal, name: str) -> Decimal:
    if value < 0:
        raise ValueError(f"{name} cannot be negative, got {value}")
    return value


def parse_posting(data: dict[str, Any]) -> PostingConfig:
    defaults = PostingConfig()
    tolerance = _non_negative(
        parse_decimal(data.get("balance_tolerance", defaults.balance_tolerance), "posting.balance_tolerance"),
        "posting.balance_tolerance",
    )
    places = int(data.get("money_decimal_places", defaults.money_decimal_places))
    if places < 0:
        raise ValueError(f"posting.money_decimal_places cannot be negative, got {places}")
    return PostingConfig(balance_tolerance=tolerance, money_decimal_places=places)


def parse_gst(data: dict[str, Any]) -> GstConfig:
    defaults = GstConfig()
    threshold = _non_negative(
        parse_decimal(data.get("b2c_large_threshold", defaults.b2c_large_threshold), "gst.b2c_large_threshold"),
        "gst.b2c_large_threshold",
    )
    rate = _non_negative(
        parse_decimal(data.get("default_tax_rate", defaults.default_tax_rate), "gst.default_tax_rate"),
        "gst.default_tax_rate",
    )
    return GstConfig(b2c_large_threshold=threshold, default_tax_rate=rate)


def parse_reporting(data: dict[str, Any]) -> ReportingConfig:
    return ReportingConfig(include_zero_balances=bool(data.get("include_zero_balances", False)))


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=str(data.get("url", defaults.url)),
        echo=bool(data.get("echo", defaults.echo)),
    )


def parse_config(data: dict[str, Any]) -> BooksConfig:
    """
    Build a BooksConfig from an already-loaded YAML mapping.

    Raises:
        ValueError: a section is not a mapping or a value is out of range.
    """
    sections = {}
    for key in ("posting", "gst", "reporting", "database"):
        section = data.get(key) or {}
        if not isinstance(section, dict):
            raise ValueError(f"config section '{key}' must be a mapping")
        sections[key] = section

    return BooksConfig(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        posting=parse_posting(sections["posting"]),
        gst=parse_gst(sections["gst"]),
        reporting=parse_reporting(sections["reporting"]),
        database=parse_database(sections["database"]),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> BooksConfig:
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
