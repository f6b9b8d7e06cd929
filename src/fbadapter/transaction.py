"""
Transaction handling for database operations.
"""
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from fbadapter.binder import BoundParameter

if TYPE_CHECKING:
    from fbadapter.connection import Database

logger = logging.getLogger(__name__)


class Transaction:
    """Context manager for running multiple statements in one transaction.

    The database lock is held from begin until commit or rollback, so no other
    thread can run statements against the same `Database` in between. Nested
    transactions on the same database are not supported.

    Examples
        with Transaction(db) as tx:
            tx.execute('delete from ...')
            tx.execute('insert into ... values (@1, @2)', params)
    """

    def __init__(self, db: 'Database') -> None:
        self.db = db
        self.strategy = db.strategy

    def __enter__(self) -> 'Transaction':
        self.db._lock.acquire()
        try:
            self.db._require_open()
            if self.db.in_transaction:
                raise RuntimeError('Nested transactions are not supported')
            self.strategy.begin(self.db.dbapi_connection)
            self.db.in_transaction = True
        except Exception:
            self.db._lock.release()
            raise
        logger.debug('Transaction started')
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> bool:
        try:
            if exc_type is not None:
                logger.warning(f'Rolling back transaction due to {exc_type.__name__}: {exc_val}')
                self.strategy.rollback(self.db.dbapi_connection)
                return False
            try:
                self.strategy.commit(self.db.dbapi_connection)
                logger.debug('Transaction committed')
            except Exception as err:
                logger.warning(f'Rolling back transaction after failed commit: {err}')
                self.strategy.rollback(self.db.dbapi_connection)
                raise
            return False
        finally:
            self.db.in_transaction = False
            self.db._lock.release()

    def execute(self, sql: str, params: Sequence[BoundParameter] | None = None) -> int:
        """Execute a statement inside the transaction and return its row count.
        """
        with self.db.cursor() as cursor:
            return cursor.execute(sql, params)
