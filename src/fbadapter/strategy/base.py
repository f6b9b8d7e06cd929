"""
Base strategy interface for database operations.

Defines the abstract base class that all dialect-specific strategy
implementations inherit from. A strategy owns everything the façade must not
know about a particular engine: connection URLs, backing-store creation,
transaction primitives, placeholder style, catalog queries and how columns are
removed from a table.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from fbadapter.binder import DATETIME_BIND_FORMAT
from fbadapter.sql import standardize_placeholders
from fbadapter.sql_generation import create_table_as_select_sql, drop_table_sql
from fbadapter.sql_generation import rename_table_sql

if TYPE_CHECKING:
    from fbadapter.connection import Database
    from fbadapter.options import DatabaseOptions

logger = logging.getLogger(__name__)

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}

OLD_TABLE_SUFFIX = '_old'


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('firebird')
        class FirebirdStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    placeholder = '?'
    datetime_bind_format = DATETIME_BIND_FORMAT

    @contextmanager
    def _cursor(self, cn: 'Database', sql: str, params: tuple | None = None):
        """Context manager for cursor lifecycle.

        Handles cursor creation, SQL execution, and cleanup.
        """
        cursor = cn.dbapi_connection.cursor()
        try:
            cursor.execute(sql, params or ())
            yield cursor
        finally:
            cursor.close()

    def _select_column_raw(self, cn: 'Database', sql: str,
                           params: tuple | None = None) -> list:
        """Execute SQL and return first column as list.

        Used internally by strategy methods for catalog queries.
        """
        with self._cursor(cn, sql, params) as cursor:
            return [row[0] for row in cursor.fetchall()]

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'firebird', 'sqlite')."""

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions',
                             read_only: bool = False) -> sa.URL:
        """Build the SQLAlchemy connection URL for this dialect.
        """

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return extra SQLAlchemy create_engine kwargs for this dialect.
        """
        return {}

    @abstractmethod
    def create_database(self, options: 'DatabaseOptions') -> None:
        """Create the backing store if it does not exist yet.
        """

    def configure_connection(self, raw_conn: Any) -> None:
        """Apply dialect settings to a freshly opened DBAPI connection.
        """

    @abstractmethod
    def begin(self, raw_conn: Any) -> None:
        """Start an explicit transaction on the raw connection.
        """

    def commit(self, raw_conn: Any) -> None:
        raw_conn.commit()

    def rollback(self, raw_conn: Any) -> None:
        raw_conn.rollback()

    def standardize_sql(self, sql: str) -> tuple[str, list[int]]:
        """Convert `@N` placeholders to this dialect's marker.

        Returns
            SQL for the driver and the 1-based parameter positions in the
            order the driver expects them
        """
        return standardize_placeholders(sql, self.placeholder)

    def catalog_identifier(self, identifier: str) -> str:
        """Return an identifier as the system catalog stores it.
        """
        return identifier

    def get_table_names(self, cn: 'Database') -> list[str]:
        """Names of all user tables (no views, no system tables), sorted.
        """
        return self._select_column_raw(cn, self.table_names_sql())

    def get_columns(self, cn: 'Database', table: str) -> list[str]:
        """Column names of a table in physical order.
        """
        return self._select_column_raw(cn, self.column_names_sql(table))

    def field_exists(self, cn: 'Database', table: str, field: str) -> bool:
        counts = self._select_column_raw(cn, self.field_exists_sql(table, field))
        return bool(counts) and int(counts[0]) > 0

    @abstractmethod
    def table_names_sql(self) -> str:
        """Catalog query listing user table names in sorted order."""

    @abstractmethod
    def column_names_sql(self, table: str) -> str:
        """Catalog query listing a table's columns in physical order."""

    @abstractmethod
    def field_exists_sql(self, table: str, field: str) -> str:
        """Catalog query counting matches of a field on a table."""

    def drop_columns_statements(self, table: str, removed: Sequence[str],
                                retained: Sequence[str]) -> list[str]:
        """Statements that remove `removed` columns from `table`.

        Default plan for engines without a usable DROP COLUMN: move the table
        aside, rebuild it from the retained columns, drop the old copy.
        Column order of `retained` is kept.
        """
        old_table = f'{table}{OLD_TABLE_SUFFIX}'
        return [
            rename_table_sql(table, old_table),
            create_table_as_select_sql(table, old_table, retained),
            drop_table_sql(old_table),
            ]
