from fx_deal_system.repositories.interfaces import DealRepository, TransactionManager
from fx_deal_system.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteDealRepository,
    SQLiteTransactionManager,
)

__all__ = [
    "DealRepository",
    "TransactionManager",
    "SQLiteDatabase",
    "SQLiteDealRepository",
    "SQLiteTransactionManager",
]

# PostgreSQL support is optional - only available if psycopg2 is installed
try:
    from fx_deal_system.repositories.postgres import (
        PostgresDatabase,
        PostgresDealRepository,
        PostgresTransactionManager,
    )

    __all__ += [
        "PostgresDatabase",
        "PostgresDealRepository",
        "PostgresTransactionManager",
    ]
except ImportError:
    pass
