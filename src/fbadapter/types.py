"""
Canonical value typing for query results.

Raw cell values arrive one column at a time in row order with no declared
type. A `ColumnAccumulator` infers a single canonical type for the whole column
from the values it sees, then converts every stored value to that type on
read-back. Inference only ever widens:

    (unset) -> INTEGER -> DOUBLE
    (unset) -> DATETIME
    (unset) -> BYTES
    anything -> TEXT

`materialize()` runs a full result set through one accumulator per column.
"""
import datetime
import decimal
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self

import numpy as np
from fbadapter.exceptions import DataIntegrityError, TypeConversionError

logger = logging.getLogger(__name__)

INT32_MIN = -2**31
INT32_MAX = 2**31 - 1

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
_DATETIME_TEXT = re.compile(r'\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}')


class CanonicalType(Enum):
    """Value types every result column is reduced to."""
    INTEGER = 'integer'
    DOUBLE = 'double'
    DATETIME = 'datetime'
    BYTES = 'bytes'
    TEXT = 'text'


def parse_datetime_text(value: str) -> datetime.datetime | None:
    """Parse text in the exact `yyyy-MM-dd HH:mm:ss` form, else None.

    No fuzzy parsing: single-digit fields, fractional seconds, a `T`
    separator or surrounding whitespace all fail.
    """
    if not _DATETIME_TEXT.fullmatch(value):
        return None
    try:
        return datetime.datetime.strptime(value, DATETIME_FORMAT)
    except ValueError:
        return None


def format_datetime(value: datetime.date, fmt: str = DATETIME_FORMAT) -> str:
    """Format with `fmt`, always writing a four-digit year.

    `strftime` does not zero-pad years below 1000 on every platform.
    """
    return value.strftime(fmt.replace('%Y', f'{value.year:04d}'))


def is_int32(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX


def _read_blob(value: Any) -> bytes:
    """Drain a driver blob reader into bytes."""
    try:
        return value.read()
    finally:
        close = getattr(value, 'close', None)
        if close is not None:
            close()


@dataclass
class ColumnAccumulator:
    """Per-column working state while a result is materialized.

    `values` keeps insertion order, which is row order; a `None` entry is a
    null at that row.
    """
    data_type: CanonicalType | None = None
    values: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    def add_int_value(self, value: int) -> None:
        if not is_int32(value):
            self.add_double_value(value)
            return
        if self.data_type is None:
            self.data_type = CanonicalType.INTEGER
        elif self.data_type not in {CanonicalType.INTEGER, CanonicalType.DOUBLE}:
            self._widen_to_text()
        self.values.append(value)

    def add_double_value(self, value: float | decimal.Decimal) -> None:
        if self.data_type in {None, CanonicalType.INTEGER}:
            self.data_type = CanonicalType.DOUBLE
        elif self.data_type is not CanonicalType.DOUBLE:
            self._widen_to_text()
        self.values.append(value)

    def add_bytes_value(self, value: bytes) -> None:
        if self.data_type is None:
            self.data_type = CanonicalType.BYTES
        elif self.data_type is not CanonicalType.BYTES:
            self._widen_to_text()
        self.values.append(value)

    def add_datetime_value(self, value: datetime.datetime) -> None:
        if self.data_type is None:
            self.data_type = CanonicalType.DATETIME
        elif self.data_type is not CanonicalType.DATETIME:
            self._widen_to_text()
        self.values.append(value)

    def add_text_value(self, value: str) -> None:
        """Date-like text is stored parsed; any other text makes the column TEXT.
        """
        parsed = parse_datetime_text(value)
        if parsed is not None:
            self.add_datetime_value(parsed)
            return
        self.data_type = CanonicalType.TEXT
        self.values.append(value)

    def add_null(self) -> None:
        self.values.append(None)

    def add_value(self, value: Any) -> None:
        """Dispatch a raw driver value to the matching append.
        """
        match value:
            case None:
                self.add_null()
            case bool() | int() | np.integer():
                self.add_int_value(int(value))
            case float() | decimal.Decimal() | np.floating():
                self.add_double_value(value)
            case bytes() | bytearray() | memoryview():
                self.add_bytes_value(bytes(value))
            case datetime.datetime():
                self.add_datetime_value(value)
            case datetime.date():
                self.add_datetime_value(datetime.datetime.combine(value, datetime.time()))
            case str():
                self.add_text_value(value)
            case _ if hasattr(value, 'read'):
                self.add_bytes_value(_read_blob(value))
            case _:
                self.data_type = CanonicalType.TEXT
                self.values.append(value)

    def _widen_to_text(self) -> None:
        logger.debug(f'Widening column from {self.data_type} to text on mixed values')
        self.data_type = CanonicalType.TEXT

    def get_value(self, row_index: int) -> Any:
        """Return the value at `row_index` converted to the column's type.
        """
        if not 0 <= row_index < len(self.values):
            raise DataIntegrityError(
                f'Not enough values found when materializing query result: '
                f'row {row_index} requested, {len(self.values)} recorded')
        value = self.values[row_index]
        if value is None:
            return None
        match self.data_type:
            case CanonicalType.INTEGER:
                return to_int32(value)
            case CanonicalType.DOUBLE:
                return float(value)
            case CanonicalType.DATETIME:
                return value
            case CanonicalType.BYTES:
                return value
            case _:
                return to_text(value)


def to_int32(value: Any) -> int:
    converted = int(value)
    if not is_int32(converted):
        raise TypeConversionError(f'Value {value!r} does not fit a 32-bit integer')
    return converted


def to_text(value: Any) -> str:
    if isinstance(value, datetime.datetime):
        return format_datetime(value)
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


@dataclass(frozen=True)
class ResultColumn:
    """Name and final canonical type of one result column."""
    name: str
    data_type: CanonicalType | None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'data_type': self.data_type.value if self.data_type else None,
        }

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        return [col.name for col in columns]

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict]:
        return {col.name: col.to_dict() for col in columns}


def materialize(names: Sequence[str], rows: Sequence[Sequence[Any]]) -> tuple[list[ResultColumn], list[tuple]]:
    """Run raw rows through one accumulator per column.

    Returns the typed columns and the rows with every value converted to its
    column's canonical type.
    """
    accumulators = [ColumnAccumulator() for _ in names]
    for row in rows:
        if len(row) != len(accumulators):
            raise DataIntegrityError(
                f'Row has {len(row)} values, result has {len(accumulators)} columns')
        for accumulator, value in zip(accumulators, row):
            accumulator.add_value(value)

    columns = [ResultColumn(name, acc.data_type) for name, acc in zip(names, accumulators)]
    typed_rows = [
        tuple(acc.get_value(i) for acc in accumulators)
        for i in range(len(rows))
        ]
    return columns, typed_rows
