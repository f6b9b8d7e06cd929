"""
Cursor wrapper used by `Database` and `Transaction`.

Implements the part of the Python DB-API 2.0 cursor (PEP-249) the adapter
needs. SQL passed to `execute` is written with `@1, @2, ...` placeholders and
may use `[name]` identifier quoting; both are rewritten for the driver here.
"""
import logging
import time
from collections.abc import Sequence
from functools import wraps
from typing import TYPE_CHECKING, Any, Self

from fbadapter.binder import BoundParameter, order_parameters
from fbadapter.sql import normalize_quoted_identifiers

if TYPE_CHECKING:
    from fbadapter.connection import Database
    from fbadapter.strategy import DatabaseStrategy

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL statements and parameter counts."""
    @wraps(func)
    def wrapper(self, operation: str, params: Sequence[BoundParameter] | None = None):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nparams: {len(params) if params else 0}')
        try:
            return func(self, operation, params)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}')
            raise
        finally:
            elapsed = time.time() - start
            self.database.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Cursor wrapper that prepares SQL for the dialect's driver.
    """

    def __init__(self, cursor: Any, database: 'Database',
                 strategy: 'DatabaseStrategy') -> None:
        self.dbapi_cursor = cursor
        self.database = database
        self.strategy = strategy

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def description(self) -> Sequence[tuple] | None:
        return self.dbapi_cursor.description

    @property
    def rowcount(self) -> int:
        return self.dbapi_cursor.rowcount

    def column_names(self) -> list[str]:
        """Names of the result columns of the last query."""
        if self.description is None:
            return []
        return [desc[0] for desc in self.description]

    @dumpsql
    def execute(self, operation: str, params: Sequence[BoundParameter] | None = None) -> int:
        """Execute a statement with optional bound parameters.

        Args:
            operation: SQL with `@N` placeholders
            params: Values bound to those placeholders by position

        Returns
            The driver's row count for the statement
        """
        sql, order = self.strategy.standardize_sql(normalize_quoted_identifiers(operation))
        args = order_parameters(params or [], order) if order else ()
        self.dbapi_cursor.execute(sql, args)
        return self.rowcount

    def fetchall(self) -> list[tuple]:
        return self.dbapi_cursor.fetchall()

    def close(self) -> None:
        self.dbapi_cursor.close()
