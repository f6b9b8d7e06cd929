import datetime
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
import pyarrow as pa
from fbadapter.strategy import get_available_dialects, get_strategy_class
from fbadapter.strategy import is_supported_dialect
from fbadapter.types import CanonicalType, ResultColumn

__all__ = [
    'DatabaseOptions',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'iterdict_data_loader',
]

SERVER_TYPES = ('embedded', 'super')

_PANDAS_DTYPES = {
    CanonicalType.INTEGER: 'Int32',
    CanonicalType.DOUBLE: 'float64',
    CanonicalType.DATETIME: 'datetime64[us]',
    CanonicalType.BYTES: object,
    CanonicalType.TEXT: 'string',
    None: object,
}

_ARROW_TYPES = {
    CanonicalType.INTEGER: pa.int32(),
    CanonicalType.DOUBLE: pa.float64(),
    CanonicalType.DATETIME: pa.timestamp('us'),
    CanonicalType.BYTES: pa.binary(),
    CanonicalType.TEXT: pa.string(),
    None: pa.null(),
}


def iterdict_data_loader(data, columns, **kwargs) -> list[dict]:
    """Minimal data loader: one dict per row, keyed by column name.

    Accepts additional keyword arguments for compatibility with other data
    loaders, but doesn't use them.
    """
    names = ResultColumn.get_names(columns)
    return [dict(zip(names, row)) for row in data]


def _column_values(data, index: int) -> list:
    return [row[index] for row in data]


def _has_aware_datetime(values: list) -> bool:
    return any(isinstance(v, datetime.datetime) and v.tzinfo is not None for v in values)


def _pandas_series(data_type: CanonicalType | None, values: list) -> pd.Series:
    """Timezone-aware datetimes stay objects since offsets may differ per row."""
    if data_type is CanonicalType.DATETIME:
        if _has_aware_datetime(values):
            return pd.Series(values, dtype=object)
        values = np.array(values, dtype='datetime64[us]')
    return pd.Series(values, dtype=_PANDAS_DTYPES[data_type])


def _arrow_type(data_type: CanonicalType | None, values: list) -> pa.DataType:
    if data_type is CanonicalType.DATETIME and _has_aware_datetime(values):
        return pa.timestamp('us', tz='UTC')
    return _ARROW_TYPES[data_type]


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, with typed columns preserved for empty results.
    Canonical column types are kept in `DataFrame.attrs['column_types']`.
    Naive datetimes load at microsecond resolution, which covers years 1
    through 9999.
    """
    series = {}
    for i, col in enumerate(columns):
        values = _column_values(data, i)
        series[i] = _pandas_series(col.data_type, values)
    df = pd.DataFrame(series)
    df.columns = ResultColumn.get_names(columns)
    df.attrs['column_types'] = ResultColumn.get_column_types_dict(columns)
    return df


def pandas_pyarrow_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """PyArrow-based pandas DataFrame loader.

    Always returns a DataFrame, with typed columns preserved for empty results.
    """
    arrays = []
    for i, col in enumerate(columns):
        values = _column_values(data, i)
        arrays.append(pa.array(values, type=_arrow_type(col.data_type, values)))
    table = pa.Table.from_arrays(arrays, names=ResultColumn.get_names(columns))
    df = table.to_pandas(types_mapper=pd.ArrowDtype)
    df.attrs['column_types'] = ResultColumn.get_column_types_dict(columns)
    return df


@dataclass
class DatabaseOptions:
    """Options

    supported driver names: `firebird`, `sqlite`

    Firebird options:
    - server_type: `embedded` (local file, no host) or `super` (server)
    - charset: connection character set (default: UNICODE_FSS)
    - page_size: page size used when an embedded database is created
    """
    drivername: str = 'firebird'
    database: str = None
    hostname: str = 'localhost'
    username: str = 'SYSDBA'
    password: str = 'masterkey'
    port: int = 3050
    charset: str = 'UNICODE_FSS'
    server_type: str = 'embedded'
    page_size: int = 0
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        if self.server_type not in SERVER_TYPES:
            raise ValueError(f'server_type must be one of: {list(SERVER_TYPES)}')
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)
        if self.data_loader is None:
            self.data_loader = pandas_numpy_data_loader
