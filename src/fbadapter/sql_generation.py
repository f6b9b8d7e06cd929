"""
Utilities for DDL/DML statement generation.

Statements use `@1, @2, ...` positional placeholders (1-based, in column
order); the dialect strategy rewrites them for the driver at execution time.
"""
import datetime
import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
from fbadapter.sql import quote_identifier
from fbadapter.types import is_int32

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_TYPE = 'INTEGER'


def make_placeholders(count: int) -> str:
    return ','.join(f'@{i}' for i in range(1, count + 1))


def create_insert_sql(table: str, columns: Sequence[str]) -> str:
    """Generate a parameterized INSERT statement.

    Args:
        table: Table name, emitted as given
        columns: Column names, double-quoted verbatim

    Returns
        e.g. `INSERT INTO T("a","b") VALUES (@1,@2)`
    """
    quoted_columns = ','.join(quote_identifier(col) for col in columns)
    return f'INSERT INTO {table}({quoted_columns}) VALUES ({make_placeholders(len(columns))})'


def create_table_sql(table: str, columns: Sequence[str],
                     column_types: Sequence[str | None]) -> str:
    """Generate a CREATE TABLE statement from parallel name and type lists.

    A `None` type defaults to INTEGER.
    """
    if len(columns) != len(column_types):
        raise ValueError(
            f'{len(columns)} column names but {len(column_types)} column types')
    defs = ','.join(
        f'{quote_identifier(col)} {col_type or DEFAULT_COLUMN_TYPE}'
        for col, col_type in zip(columns, column_types)
        )
    return f'CREATE TABLE {table} ({defs})'


def rename_table_sql(table: str, new_name: str) -> str:
    return f'ALTER TABLE {quote_identifier(table)} RENAME TO {quote_identifier(new_name)}'


def create_table_as_select_sql(table: str, source: str, columns: Sequence[str]) -> str:
    quoted_columns = ','.join(quote_identifier(col) for col in columns)
    return (f'CREATE TABLE {quote_identifier(table)} AS '
            f'SELECT {quoted_columns} FROM {quote_identifier(source)}')


def drop_table_sql(table: str) -> str:
    return f'DROP TABLE {quote_identifier(table)}'


def get_db_data_type_name(value: Any) -> str:
    """Map an in-memory value to the DDL type name that stores it.

    Integers outside the 32-bit range get VARCHAR(50), as they bind as text.
    """
    if value is None:
        return DEFAULT_COLUMN_TYPE
    if isinstance(value, datetime.datetime):
        return 'TIMESTAMP'
    if isinstance(value, (int, np.integer)) and is_int32(int(value)):
        return 'INTEGER'
    if isinstance(value, np.float32):
        return 'FLOAT'
    if isinstance(value, (float, np.float64)):
        return 'DOUBLE PRECISION'
    return 'VARCHAR(50)'


def as_sql_string(value: datetime.datetime) -> str:
    """Format a datetime as a quoted `d.M.yyyy, H:m:s.000` literal.
    """
    return (f"'{value.day}.{value.month}.{value.year:04d}, "
            f"{value.hour}:{value.minute}:{value.second}.000'")
