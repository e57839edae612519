"""
Config -> Kernel Bridges.

Functions that turn a ``BooksConfig`` into kernel objects.  They live in
ledger_config because the kernel must NEVER import ledger_config.

Usage:
    from ledger_config.bridges import init_engine_from_config

    config = get_active_config()
    engine = init_engine_from_config(config)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from ledger_config.schema import BooksConfig
from ledger_kernel.db.engine import init_engine_from_url


def init_engine_from_config(config: BooksConfig) -> Engine:
    """Initialize the module-level engine from the ``database`` section."""
    return init_engine_from_url(config.database.url, echo=config.database.echo)
