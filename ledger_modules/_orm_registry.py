"""
Module ORM Registry (``ledger_modules._orm_registry``).

Ensures every SQLAlchemy model is imported so that ``Base.metadata``
holds all table definitions before ``create_tables()`` runs.

Usage
-----
``ledger_kernel.db.engine.create_tables()`` calls
``import_all_orm_models()``; scripts and ``tests/conftest.py`` go through
that one entry point.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``ledger_modules.*.orm`` module.

    Kernel tables (companies, ledgers, vouchers, ...) register first so
    module tables can reference them.  Idempotent.
    """
    import ledger_kernel.models  # noqa: F401
    import ledger_kernel.services.sequence_service  # noqa: F401
    import ledger_modules.invoicing.orm  # noqa: F401
    import ledger_modules.recurring.orm  # noqa: F401
