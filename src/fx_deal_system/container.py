"""Wiring for the deal service and its storage backend.

The container picks the SQLite or PostgreSQL adapters from Settings and
builds each piece on first use:

    with Container(settings) as container:
        container.deal_service.import_deal(request)

The API resolves the service through ``get_deal_service``, which tests
replace with ``app.dependency_overrides``.
"""

from functools import cached_property
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from fx_deal_system.config import DatabaseType, Settings, get_settings
from fx_deal_system.logging_config import get_logger

if TYPE_CHECKING:
    from fx_deal_system.repositories.interfaces import (
        DealRepository,
        TransactionManager,
    )
    from fx_deal_system.services.interfaces import DealService

logger = get_logger(__name__)


def _dsn_host(url: str) -> str:
    # Credentials stay out of the logs.
    return urlsplit(url).hostname or "localhost"


class Container:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._postgres = self.settings.database_type == DatabaseType.POSTGRES

    @cached_property
    def database(self) -> Any:
        """The backend's connection manager, with its schema created."""
        if self._postgres:
            url = self.settings.database_url
            if not url:
                raise ValueError(
                    "database_url must be set when database_type is postgres"
                )
            from fx_deal_system.repositories.postgres import PostgresDatabase

            logger.info("opening_postgres_database", host=_dsn_host(url))
            db: Any = PostgresDatabase(url)
        else:
            from fx_deal_system.repositories.sqlite import SQLiteDatabase

            path = str(self.settings.sqlite_path)
            logger.info("opening_sqlite_database", path=path)
            # Sync routes run in FastAPI's threadpool.
            db = SQLiteDatabase(path, check_same_thread=False)
        db.initialize()
        return db

    @cached_property
    def deal_repository(self) -> "DealRepository":
        if self._postgres:
            from fx_deal_system.repositories.postgres import PostgresDealRepository

            return PostgresDealRepository(self.database)
        from fx_deal_system.repositories.sqlite import SQLiteDealRepository

        return SQLiteDealRepository(self.database)

    @cached_property
    def transaction_manager(self) -> "TransactionManager | None":
        """None when ``use_transactions`` is off; deals are then saved directly."""
        if not self.settings.use_transactions:
            return None
        if self._postgres:
            from fx_deal_system.repositories.postgres import PostgresTransactionManager

            return PostgresTransactionManager(self.database)
        from fx_deal_system.repositories.sqlite import SQLiteTransactionManager

        return SQLiteTransactionManager(self.database)

    @cached_property
    def deal_service(self) -> "DealService":
        from fx_deal_system.services.deals import DealServiceImpl

        return DealServiceImpl(
            deal_repo=self.deal_repository,
            transaction_manager=self.transaction_manager,
        )

    def close(self) -> None:
        # Only a database that was actually opened needs closing.
        if "database" in self.__dict__:
            logger.info("closing_database")
            self.database.close()
            del self.__dict__["database"]

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


_container: Container | None = None


def get_container() -> Container:
    """The process-wide container, created on first call."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Close and forget the process-wide container."""
    global _container
    if _container is not None:
        _container.close()
    _container = None


def get_deal_service() -> "DealService":
    """FastAPI dependency for the deal service."""
    return get_container().deal_service
