"""
Firebird-specific strategy implementation.

Firebird differs from the generic plan in a few ways this module absorbs:
- Unquoted identifiers are stored uppercase in the system catalog, and
  catalog names are CHAR columns padded with trailing spaces
- Tables cannot be renamed and there is no CREATE TABLE ... AS SELECT, so
  columns are removed with ALTER TABLE ... DROP
- Transactions are started explicitly on the driver connection
- An embedded database file is created on first open
"""
import logging
import os
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from fbadapter.sql import quote_identifier, quote_literal
from fbadapter.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from fbadapter.connection import Database
    from fbadapter.options import DatabaseOptions

logger = logging.getLogger(__name__)

DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 3050
DEFAULT_CHARSET = 'UNICODE_FSS'

_USER_RELATION = ('{alias}rdb$view_blr is null and '
                  '({alias}rdb$system_flag is null or {alias}rdb$system_flag = 0)')


@register_strategy('firebird')
class FirebirdStrategy(DatabaseStrategy):
    """Firebird-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for Firebird."""
        return 'firebird'

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for Firebird connections."""
        return ['database', 'username', 'password']

    def build_connection_url(self, options: 'DatabaseOptions',
                             read_only: bool = False) -> sa.URL:
        """Build the SQLAlchemy connection URL for Firebird.

        An embedded server takes no host; the database path is used as is.
        Read-only is enforced by the façade, the URL is the same.
        """
        query = {'charset': options.charset or DEFAULT_CHARSET}
        if options.server_type == 'embedded':
            return sa.URL.create(
                'firebird+firebird',
                username=options.username,
                password=options.password,
                database=options.database,
                query=query,
                )
        return sa.URL.create(
            'firebird+firebird',
            username=options.username,
            password=options.password,
            host=options.hostname or DEFAULT_HOST,
            port=options.port or DEFAULT_PORT,
            database=options.database,
            query=query,
            )

    def create_database(self, options: 'DatabaseOptions') -> None:
        """Create an embedded database file when it is missing.

        Server databases are managed by the server and must already exist.
        """
        if options.server_type != 'embedded':
            logger.debug(f'Not creating {options.database}: server type is {options.server_type}')
            return
        if os.path.exists(options.database):
            return
        from firebird.driver import create_database

        logger.info(f'Creating Firebird database {options.database}')
        kwargs = {
            'user': options.username,
            'password': options.password,
            'charset': options.charset or DEFAULT_CHARSET,
            }
        if options.page_size:
            kwargs['page_size'] = options.page_size
        con = create_database(options.database, **kwargs)
        con.close()

    def begin(self, raw_conn: Any) -> None:
        """Start a transaction, committing any implicit one the driver opened.
        """
        self.commit(raw_conn)
        raw_conn.begin()

    def commit(self, raw_conn: Any) -> None:
        if raw_conn.main_transaction.is_active():
            raw_conn.commit()

    def rollback(self, raw_conn: Any) -> None:
        if raw_conn.main_transaction.is_active():
            raw_conn.rollback()

    def catalog_identifier(self, identifier: str) -> str:
        return identifier.upper()

    def get_table_names(self, cn: 'Database') -> list[str]:
        return [name.rstrip() for name in super().get_table_names(cn)]

    def get_columns(self, cn: 'Database', table: str) -> list[str]:
        return [name.rstrip() for name in super().get_columns(cn, table)]

    def table_names_sql(self) -> str:
        return ('select rdb$relation_name from rdb$relations '
                f"where {_USER_RELATION.format(alias='')} "
                'order by rdb$relation_name')

    def column_names_sql(self, table: str) -> str:
        relation = quote_literal(self.catalog_identifier(table))
        return ('select rdb$field_name from rdb$relation_fields '
                f'where rdb$relation_name = {relation} '
                'order by rdb$field_position')

    def field_exists_sql(self, table: str, field: str) -> str:
        """Quoted columns keep their case, so the field matches as given or uppercased.
        """
        relation = quote_literal(self.catalog_identifier(table))
        names = f'{quote_literal(field)}, {quote_literal(self.catalog_identifier(field))}'
        return ('select count(f.rdb$relation_name) from rdb$relation_fields f '
                'join rdb$relations r on f.rdb$relation_name = r.rdb$relation_name '
                f'and f.rdb$relation_name = {relation} '
                f'and f.rdb$field_name in ({names}) '
                f"and {_USER_RELATION.format(alias='r.')}")

    def drop_columns_statements(self, table: str, removed: Sequence[str],
                                retained: Sequence[str]) -> list[str]:
        """One ALTER TABLE ... DROP per removed column.

        Replaces the rename, rebuild and drop plan of the base strategy, which
        Firebird cannot run: it has no RENAME for tables and no CREATE TABLE
        ... AS SELECT. Dropping in place keeps the order of the retained
        columns, and the statements share one transaction, so the outcome is
        the same.
        """
        quoted_table = quote_identifier(self.catalog_identifier(table))
        return [f'ALTER TABLE {quoted_table} DROP {quote_identifier(col)}' for col in removed]
