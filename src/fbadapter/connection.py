"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `open_database()` function for opening a database in one call
2. The `Database` class, the adapter's single entry point for queries,
   statements, schema introspection, table creation, batch inserts and
   column removal
3. Engine creation and management through a thread-safe registry

A `Database` owns exactly one connection and is either closed or open. The
DBAPI connection behind the SQLAlchemy connection is used directly for
cursors and transactions; every operation runs under the instance's lock.
"""
import atexit
import dataclasses
import datetime
import logging
import threading
from collections.abc import Iterable, Sequence
from typing import Any, Self

import pandas as pd
import sqlalchemy as sa
from fbadapter.binder import bind_parameters
from fbadapter.cache import Cache, schema_cache_name
from fbadapter.cursor import Cursor
from fbadapter.exceptions import BatchInsertError, ConnectionFailure
from fbadapter.exceptions import DatabaseError, DataIntegrityError, QueryError
from fbadapter.exceptions import ReadOnlyError, TypeConversionError
from fbadapter.options import DatabaseOptions
from fbadapter.schema import TableSchema, drop_columns
from fbadapter.sql_generation import as_sql_string, create_insert_sql
from fbadapter.sql_generation import get_db_data_type_name
from fbadapter.strategy import DatabaseStrategy, get_strategy
from fbadapter.transaction import Transaction
from fbadapter.types import ResultColumn, materialize
from fbadapter.utils import get_raw_connection
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

__all__ = [
    'Database',
    'open_database',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: DatabaseOptions, strategy: DatabaseStrategy,
                           read_only: bool = False, **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines never pool connections; each `Database` holds its own.
    """
    key = f'{options!s}_{read_only}'

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        url = strategy.build_connection_url(options, read_only=read_only)
        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        engine = sa.create_engine(url, **engine_kwargs)
        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')
        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class Database:
    """Firebird (or SQLite) database adapter.

    Tracks query counts and execution time, supports the context manager
    protocol and keeps a per-instance cache of table columns.

    Examples
        with open_database('/data/run.fdb') as db:
            db.create_table('RESULTS', ['id', 'value'], ['INTEGER', 'DOUBLE PRECISION'])
            db.insert_rows('RESULTS', ['id', 'value'], [(1, 0.5), (2, 1.5)])
            df = db.execute_query('select * from RESULTS')
    """

    def __init__(self, options: DatabaseOptions | None = None, **kwargs: Any) -> None:
        self.options = options or DatabaseOptions(**kwargs)
        self.strategy = get_strategy(self.options.drivername)
        self.engine: Engine | None = None
        self.sa_connection: sa.engine.Connection | None = None
        self.dbapi_connection: Any = None
        self.is_read_only = False
        self.in_transaction = False
        self.calls = 0
        self.time = 0.0
        self._lock = threading.RLock()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close_database()

    def __repr__(self) -> str:
        state = 'open' if self.is_open else 'closed'
        return f'<Database {self.dialect}:{self.options.database} ({state})>'

    @property
    def dialect(self) -> str:
        return self.options.drivername

    @property
    def is_open(self) -> bool:
        return self.dbapi_connection is not None

    @property
    def _schema_cache(self):
        return Cache.get_instance().get_schema_cache(id(self))

    def _require_open(self) -> None:
        if not self.is_open:
            raise ConnectionFailure(f'Database {self.options.database} is not open')

    def _require_writable(self, operation: str) -> None:
        if self.is_read_only:
            raise ReadOnlyError(
                f'Cannot {operation}: database {self.options.database} is open read-only')

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def cursor(self) -> Cursor:
        """Get a wrapped cursor for this connection
        """
        self._require_open()
        return Cursor(self.dbapi_connection.cursor(), self, self.strategy)

    def open_database(self, path: str | None = None, read_only: bool = False) -> Self:
        """Open the database, creating it first unless read-only.

        Args:
            path: Database file (or server path); defaults to `options.database`
            read_only: Open without creating anything and refuse writes

        Raises
            ConnectionFailure: If the database cannot be created or opened;
            the database stays closed
        """
        with self._lock:
            if self.is_open:
                raise ConnectionFailure(f'Database {self.options.database} is already open')
            options = self.options
            if path is not None:
                options = dataclasses.replace(options, database=path)

            sa_connection = None
            try:
                if not read_only:
                    self.strategy.create_database(options)
                engine = get_engine_for_options(options, self.strategy, read_only)
                sa_connection = engine.connect()
                raw_conn = get_raw_connection(sa_connection)
                self.strategy.configure_connection(raw_conn)
            except Exception as err:
                if sa_connection is not None:
                    sa_connection.close()
                raise ConnectionFailure(
                    f'Database {options.database} is unavailable', err) from err

            self.options = options
            self.engine = engine
            self.sa_connection = sa_connection
            self.dbapi_connection = raw_conn
            self.is_read_only = read_only
            self.calls = 0
            self.time = 0.0
            mode = ' (read-only)' if read_only else ''
            logger.info(f'Opened {self.dialect} database {self.options.database}{mode}')
        return self

    def close_database(self) -> None:
        """Close the connection, committing outstanding work first.
        """
        with self._lock:
            if not self.is_open:
                logger.debug(f'Database {self.options.database} already closed')
                return
            try:
                self.strategy.commit(self.dbapi_connection)
                self.sa_connection.close()
            finally:
                self.sa_connection = None
                self.dbapi_connection = None
                self.is_read_only = False
                Cache.get_instance().drop_cache(schema_cache_name(id(self)))
                logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s '
                             f'(avg: {self.time/max(1, self.calls):.3f}s per query)')

    def _end_statement(self) -> None:
        """Commit outside an explicit transaction."""
        if not self.in_transaction:
            self.strategy.commit(self.dbapi_connection)

    def _abort_statement(self) -> None:
        if self.in_transaction:
            return
        try:
            self.strategy.rollback(self.dbapi_connection)
        except Exception as err:
            logger.debug(f'Rollback after failed statement also failed: {err}')

    def execute_non_query(self, sql: str) -> int:
        """Execute a statement that returns no rows and return its row count.

        Raises
            QueryError: If the statement fails
        """
        with self._lock:
            self._require_open()
            self._require_writable('execute statements')
            try:
                with self.cursor() as cursor:
                    rowcount = cursor.execute(sql)
                self._end_statement()
            except Exception as err:
                self._abort_statement()
                raise QueryError('Error executing statement', sql, err) from err
            finally:
                self._schema_cache.clear()
            logger.debug(f'Statement affected {rowcount} rows')
            return rowcount

    def _run_query(self, sql: str) -> tuple[list[ResultColumn], list[tuple]]:
        with self._lock:
            self._require_open()
            try:
                with self.cursor() as cursor:
                    cursor.execute(sql)
                    names = cursor.column_names()
                    columns, rows = materialize(names, cursor.fetchall())
                self._end_statement()
            except DatabaseError:
                self._abort_statement()
                raise
            except Exception as err:
                self._abort_statement()
                raise QueryError('Error executing query', sql, err) from err
            logger.debug(f'Query returned {len(rows)} rows')
            return columns, rows

    def execute_query(self, sql: str) -> pd.DataFrame | list[dict]:
        """Run a query and return its typed result through the data loader.
        """
        columns, rows = self._run_query(sql)
        try:
            return self.options.data_loader(rows, columns)
        except DatabaseError:
            raise
        except Exception as err:
            raise QueryError('Error loading query result', sql, err) from err

    def execute_query_return_int(self, sql: str, column_index: int = 0) -> int | None:
        """Return a column of the first row as an integer.

        Returns
            None when the query returns no rows or the value is null
        """
        columns, rows = self._run_query(sql)
        if not rows:
            return None
        if not 0 <= column_index < len(columns):
            raise DataIntegrityError(
                f'Column {column_index} requested, query returned {len(columns)} columns')
        value = rows[0][column_index]
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as err:
            raise TypeConversionError(f'Value {value!r} is not an integer', err) from err

    def _catalog(self, func, *args: Any) -> Any:
        with self._lock:
            self._require_open()
            try:
                result = func(self, *args)
                self._end_statement()
                return result
            except Exception as err:
                self._abort_statement()
                raise QueryError(f'Error reading catalog with {func.__name__}', cause=err) from err

    def get_table_names(self) -> list[str]:
        """Names of all user tables, sorted.
        """
        return self._catalog(self.strategy.get_table_names)

    def get_column_names(self, table: str, bypass_cache: bool = False) -> list[str]:
        """Column names of a table in physical order.
        """
        with self._lock:
            self._require_open()
            cache_key = ('columns', self.strategy.catalog_identifier(table))
            cache = self._schema_cache
            if not bypass_cache and cache_key in cache:
                return list(cache[cache_key])
            columns = self._catalog(self.strategy.get_columns, table)
            cache[cache_key] = columns
            return list(columns)

    get_table_columns = get_column_names

    def table_exists(self, table: str) -> bool:
        names = set(self.get_table_names())
        return table in names or self.strategy.catalog_identifier(table) in names

    def field_exists(self, table: str, field: str) -> bool:
        return self._catalog(self.strategy.field_exists, table, field)

    def invalidate_table(self, table: str) -> None:
        """Forget cached columns of `table`."""
        self._schema_cache.pop(('columns', self.strategy.catalog_identifier(table)), None)

    def create_table(self, table: str, column_names: Sequence[str],
                     column_type_names: Sequence[str | None]) -> None:
        """Create a table from parallel lists of column names and type names.
        """
        self.create_table_from_schema(
            TableSchema.from_lists(table, column_names, column_type_names))

    def create_table_from_schema(self, schema: TableSchema) -> None:
        with self._lock:
            self._require_open()
            self._require_writable('create table')
            self.execute_non_query(schema.create_sql())
            self.invalidate_table(schema.name)
            logger.info(f'Created table {schema.name} with {len(schema.columns)} columns')

    def create_insert_sql(self, table: str, column_names: Sequence[str]) -> str:
        return create_insert_sql(table, column_names)

    def insert_rows(self, table: str, column_names: Sequence[str],
                    rows: Iterable[Sequence[Any]] | pd.DataFrame) -> int:
        """Insert rows in one transaction and return how many were inserted.

        Every value is bound by its runtime type. The lock is held from begin
        to commit, so no other statement on this database interleaves.

        Raises
            BatchInsertError: If any row fails; no row of the batch is kept
        """
        if isinstance(rows, pd.DataFrame):
            rows = rows.itertuples(index=False, name=None)
        sql = self.create_insert_sql(table, column_names)
        datetime_format = self.strategy.datetime_bind_format

        with self._lock:
            self._require_open()
            self._require_writable('insert rows')
            count = 0
            try:
                with Transaction(self) as tx:
                    for row in rows:
                        if len(row) != len(column_names):
                            raise ValueError(
                                f'Row {count} has {len(row)} values '
                                f'for {len(column_names)} columns')
                        tx.execute(sql, bind_parameters(row, datetime_format))
                        count += 1
            except Exception as err:
                raise BatchInsertError(
                    f'Failed to insert rows into {table} at row {count}', err) from err
            logger.debug(f'Inserted {count} rows into {table}')
            return count

    def drop_columns(self, table: str, names: Iterable[str]) -> None:
        """Remove columns from a table, keeping the order of the others.
        """
        drop_columns(self, table, names)

    @staticmethod
    def get_db_data_type_name(value: Any) -> str:
        return get_db_data_type_name(value)

    @staticmethod
    def as_sql_string(value: datetime.datetime) -> str:
        return as_sql_string(value)


def open_database(path: str, read_only: bool = False, **options: Any) -> Database:
    """Open a database in one call.

    Args:
        path: Database file (or server path)
        read_only: Open without creating anything and refuse writes
        options: Further `DatabaseOptions` fields, e.g. `drivername='sqlite'`

    Returns
        An open `Database`
    """
    db = Database(DatabaseOptions(database=path, **options))
    return db.open_database(read_only=read_only)
