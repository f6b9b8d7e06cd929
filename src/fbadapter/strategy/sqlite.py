"""
SQLite-specific strategy implementation.

Used for file databases where a Firebird server is not available. The
connection runs in autocommit mode and transactions are delimited with
explicit BEGIN/COMMIT so DDL takes part in them. Datetimes bind as
`yyyy-MM-dd HH:mm:ss` text, which reads back as DATETIME.
"""
import logging
import os
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from fbadapter.sql import quote_literal
from fbadapter.strategy.base import DatabaseStrategy, register_strategy
from fbadapter.types import DATETIME_FORMAT

if TYPE_CHECKING:
    from fbadapter.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    datetime_bind_format = DATETIME_FORMAT

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def build_connection_url(self, options: 'DatabaseOptions',
                             read_only: bool = False) -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite.

        Read-only connections open the file as a `mode=ro` URI.
        """
        if read_only:
            return sa.URL.create(
                'sqlite',
                database=f'file:{options.database}',
                query={'mode': 'ro', 'uri': 'true'},
                )
        return sa.URL.create('sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Connections are shared across threads behind the database lock."""
        return {'connect_args': {'check_same_thread': False}}

    def create_database(self, options: 'DatabaseOptions') -> None:
        """SQLite creates the file on first connect.
        """
        if not os.path.exists(options.database):
            logger.debug(f'SQLite database {options.database} will be created on connect')

    def configure_connection(self, raw_conn: Any) -> None:
        raw_conn.isolation_level = None

    def begin(self, raw_conn: Any) -> None:
        raw_conn.execute('BEGIN')

    def commit(self, raw_conn: Any) -> None:
        if raw_conn.in_transaction:
            raw_conn.execute('COMMIT')

    def rollback(self, raw_conn: Any) -> None:
        if raw_conn.in_transaction:
            raw_conn.execute('ROLLBACK')

    def table_names_sql(self) -> str:
        return ("select name from sqlite_master where type = 'table' "
                "and name not like 'sqlite_%' order by name")

    def column_names_sql(self, table: str) -> str:
        return f'select name from pragma_table_info({quote_literal(table)}) order by cid'

    def field_exists_sql(self, table: str, field: str) -> str:
        return (f'select count(*) from pragma_table_info({quote_literal(table)}) '
                f'where name = {quote_literal(field)}')
