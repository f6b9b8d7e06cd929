"""
Parameter binding for prepared statements.

Each value of a row is dispatched on its runtime type to a bind type and a
driver value for placeholder `@i`. The dispatch is ordered and total: every
value lands in exactly one case, the last being text.

Nulls bind as empty text, never as a native NULL, and enum members bind as
their symbol name, never their ordinal. Integers outside the 32-bit range
bind as text, matching the VARCHAR column `get_db_data_type_name` picks for
them.
"""
import datetime
import decimal
import enum
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from fbadapter.types import format_datetime, is_int32

logger = logging.getLogger(__name__)

DATETIME_BIND_FORMAT = '%d.%m.%Y, %H:%M:%S.000'
DATE_BIND_FORMAT = '%d.%m.%Y'


class _NoValue:
    """Marker for an explicitly absent value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'NO_VALUE'

    def __bool__(self) -> bool:
        return False


NO_VALUE = _NoValue()


class BindType(enum.Enum):
    """Driver-side parameter types."""
    TEXT = 'text'
    INTEGER = 'integer'
    FLOAT = 'float'
    DOUBLE = 'double'
    BINARY = 'binary'


@dataclass(frozen=True, slots=True)
class BoundParameter:
    """A value ready to bind to placeholder `@position`."""
    position: int
    bind_type: BindType
    value: Any

    @property
    def name(self) -> str:
        return f'@{self.position}'


def is_no_value(value: Any) -> bool:
    """True for None, the NO_VALUE marker and pandas/NumPy missing markers."""
    if value is None or value is NO_VALUE:
        return True
    if value is pd.NA or value is pd.NaT:
        return True
    if isinstance(value, (float, np.floating)) and math.isnan(value):
        return True
    return isinstance(value, np.datetime64) and np.isnat(value)


def bind_value(value: Any, datetime_format: str = DATETIME_BIND_FORMAT) -> tuple[BindType, Any]:
    """Return the bind type and driver value for one value.
    """
    if is_no_value(value):
        return BindType.TEXT, ''
    match value:
        case enum.Enum():
            return BindType.TEXT, value.name
        case datetime.datetime():
            return BindType.TEXT, format_datetime(value, datetime_format)
        case datetime.date():
            return BindType.TEXT, format_datetime(value, DATE_BIND_FORMAT)
        case bool() | int() | np.integer() if not is_int32(int(value)):
            return BindType.TEXT, str(int(value))
        case bool() | int() | np.integer():
            return BindType.INTEGER, int(value)
        case np.float32():
            return BindType.FLOAT, float(value)
        case float() | np.floating() | decimal.Decimal():
            return BindType.DOUBLE, float(value)
        case bytes() | bytearray() | memoryview():
            return BindType.BINARY, bytes(value)
        case str():
            return BindType.TEXT, value
        case _:
            logger.debug(f'Binding {type(value).__name__} value as empty text')
            return BindType.TEXT, ''


def bind_parameters(values: Sequence[Any],
                    datetime_format: str = DATETIME_BIND_FORMAT) -> list[BoundParameter]:
    """Bind an ordered row of values to placeholders `@1..@n`.
    """
    params = []
    for position, value in enumerate(values, start=1):
        bind_type, bound = bind_value(value, datetime_format)
        params.append(BoundParameter(position, bind_type, bound))
    return params


def order_parameters(params: Sequence[BoundParameter], order: Sequence[int]) -> tuple:
    """Arrange driver values by placeholder appearance order.

    `order` lists 1-based positions as they appear in the statement text.
    """
    by_position = {p.position: p.value for p in params}
    missing = [pos for pos in order if pos not in by_position]
    if missing:
        raise ValueError(
            f'Parameter count mismatch: statement uses @{missing[0]} '
            f'but {len(params)} values were provided')
    return tuple(by_position[pos] for pos in order)
