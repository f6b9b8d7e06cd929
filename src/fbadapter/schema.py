"""
Schema evolution for existing tables.
"""
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self

from fbadapter.exceptions import SchemaEvolutionError
from fbadapter.sql_generation import create_table_sql
from fbadapter.transaction import Transaction

if TYPE_CHECKING:
    from fbadapter.connection import Database

logger = logging.getLogger(__name__)


@dataclass
class TableSchema:
    """Table name and ordered (column name, type name) pairs.

    A `None` type name is created as INTEGER.
    """
    name: str
    columns: list[tuple[str, str | None]] = field(default_factory=list)

    @classmethod
    def from_lists(cls, name: str, column_names: Sequence[str],
                   column_types: Sequence[str | None]) -> Self:
        if len(column_names) != len(column_types):
            raise ValueError(
                f'{len(column_names)} column names but {len(column_types)} column types')
        return cls(name, list(zip(column_names, column_types)))

    @property
    def column_names(self) -> list[str]:
        return [name for name, _ in self.columns]

    @property
    def column_types(self) -> list[str | None]:
        return [col_type for _, col_type in self.columns]

    def create_sql(self) -> str:
        return create_table_sql(self.name, self.column_names, self.column_types)


def split_columns(db: 'Database', table: str,
                  names: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split the current columns of `table` into removed and retained.

    A name matches a column as given or in the catalog's identifier form.
    Both lists keep the table's physical column order.
    """
    strategy = db.strategy
    wanted = set()
    for name in names:
        wanted.add(name)
        wanted.add(strategy.catalog_identifier(name))
    current = db.get_column_names(table, bypass_cache=True)
    removed = [col for col in current if col in wanted]
    retained = [col for col in current if col not in wanted]
    return removed, retained


def drop_columns(db: 'Database', table: str, names: Iterable[str]) -> None:
    """Remove columns from a table in a single transaction.

    Nothing happens when no column would remain or none of `names` exist.

    Raises
        SchemaEvolutionError: If any statement fails; the transaction is
        rolled back first
    """
    with db._lock:
        db._require_open()
        db._require_writable('drop columns')
        removed, retained = split_columns(db, table, names)
        if not retained:
            logger.warning(f'Not dropping columns from {table}: no columns would remain')
            return
        if not removed:
            logger.debug(f'No matching columns to drop from {table}')
            return

        statements = db.strategy.drop_columns_statements(table, removed, retained)
        try:
            with Transaction(db) as tx:
                for sql in statements:
                    tx.execute(sql)
        except Exception as err:
            raise SchemaEvolutionError(
                f'Failed to drop columns {removed} from {table}', err) from err
        finally:
            db.invalidate_table(table)
        logger.info(f'Dropped columns {removed} from {table}')
