"""
ledger_config -- single public entrypoint for books configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services take the values they need (balance
    tolerance, GST thresholds, report options) as constructor arguments;
    callers read them from the returned ``BooksConfig``.

Architecture position:
    Configuration -- YAML-driven settings.  Sits beside ``ledger_kernel``;
    the kernel MUST NEVER import from ``ledger_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ValueError`` -- out-of-range or malformed values.
    - ``yaml.YAMLError`` -- malformed YAML.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``config_loaded`` log entry with the config_id, version and checksum.
"""

from __future__ import annotations

from pathlib import Path

from ledger_config.loader import load_config
from ledger_config.schema import (
    BooksConfig,
    DatabaseConfig,
    GstConfig,
    PostingConfig,
    ReportingConfig,
)
from ledger_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> BooksConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            ``ledger_config/sets/default.yaml``.

    Raises:
        FileNotFoundError, ValueError, yaml.YAMLError.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    config = load_config(path)
    _logger.info(
        "config_loaded",
        extra={
            "config_id": config.config_id,
            "version": config.version,
            "checksum": config.checksum,
            "path": str(path),
        },
    )
    return config


__all__ = [
    "BooksConfig",
    "DatabaseConfig",
    "GstConfig",
    "PostingConfig",
    "ReportingConfig",
    "get_active_config",
]
