"""
Unit tests for result loaders and connection options.
"""
import datetime

import fbadapter
import pandas as pd
import pyarrow as pa
import pytest
from fbadapter.options import DatabaseOptions, iterdict_data_loader
from fbadapter.options import pandas_numpy_data_loader, pandas_pyarrow_data_loader
from fbadapter.types import CanonicalType, ResultColumn

COLUMNS = [
    ResultColumn('a', CanonicalType.INTEGER),
    ResultColumn('b', CanonicalType.TEXT),
    ResultColumn('c', CanonicalType.DATETIME),
    ResultColumn('d', CanonicalType.DOUBLE),
    ResultColumn('e', CanonicalType.BYTES),
]

ROWS = [
    (1, 'x', datetime.datetime(2024, 1, 2, 3, 4, 5), 1.5, b'\x01'),
    (None, None, None, None, None),
]


def test_numpy_loader_dtypes():
    """Test canonical types map to pandas dtypes"""
    df = pandas_numpy_data_loader(ROWS, COLUMNS)
    assert list(df.columns) == ['a', 'b', 'c', 'd', 'e']
    assert df['a'].dtype == 'Int32'
    assert df['b'].dtype == 'string'
    assert df['c'].dtype == 'datetime64[us]'
    assert df['d'].dtype == 'float64'
    assert df['e'].dtype == object
    assert df['a'][0] == 1
    assert df['c'][0] == pd.Timestamp('2024-01-02 03:04:05')
    assert df.isna().iloc[1].all()


def test_numpy_loader_column_types_attr():
    df = pandas_numpy_data_loader(ROWS, COLUMNS)
    assert df.attrs['column_types']['a'] == {'name': 'a', 'data_type': 'integer'}
    assert df.attrs['column_types']['c']['data_type'] == 'datetime'


def test_numpy_loader_empty_result_keeps_columns():
    """Test an empty result is a typed, empty DataFrame"""
    df = pandas_numpy_data_loader([], COLUMNS)
    assert df.empty
    assert list(df.columns) == ['a', 'b', 'c', 'd', 'e']
    assert df['a'].dtype == 'Int32'


def test_numpy_loader_duplicate_names():
    columns = [ResultColumn('x', CanonicalType.INTEGER), ResultColumn('x', CanonicalType.TEXT)]
    df = pandas_numpy_data_loader([(1, 'a')], columns)
    assert list(df.columns) == ['x', 'x']
    assert df.iloc[0, 1] == 'a'


def test_pyarrow_loader_dtypes():
    df = pandas_pyarrow_data_loader(ROWS, COLUMNS)
    assert df['a'].dtype == pd.ArrowDtype(pa.int32())
    assert df['b'].dtype == pd.ArrowDtype(pa.string())
    assert df['d'].dtype == pd.ArrowDtype(pa.float64())
    assert df['a'][0] == 1
    assert df.attrs['column_types']['b']['data_type'] == 'text'


def test_pyarrow_loader_all_null_column():
    df = pandas_pyarrow_data_loader([(None,), (None,)], [ResultColumn('n', None)])
    assert len(df) == 2
    assert df['n'].isna().all()


def test_iterdict_loader():
    rows = iterdict_data_loader(ROWS[:1], COLUMNS[:2])
    assert rows == [{'a': 1, 'b': 'x'}]
    assert iterdict_data_loader([], COLUMNS) == []


def test_options_defaults():
    """Test Firebird defaults and the default loader"""
    options = DatabaseOptions(database='/data/x.fdb')
    assert options.drivername == 'firebird'
    assert options.username == 'SYSDBA'
    assert options.port == 3050
    assert options.charset == 'UNICODE_FSS'
    assert options.server_type == 'embedded'
    assert options.data_loader is pandas_numpy_data_loader


def test_options_custom_loader():
    options = DatabaseOptions(drivername='sqlite', database='x.db',
                              data_loader=fbadapter.iterdict_data_loader)
    assert options.data_loader is iterdict_data_loader


@pytest.mark.parametrize(('kwargs', 'match'), [
    ({'drivername': 'postgresql', 'database': 'x'}, 'drivername'),
    ({'drivername': 'sqlite'}, 'database'),
    ({'database': 'x.fdb', 'server_type': 'classic'}, 'server_type'),
    ({'database': 'x.fdb', 'password': None}, 'password'),
])
def test_options_validation(kwargs, match):
    """Test invalid options are rejected on construction"""
    with pytest.raises(ValueError, match=match):
        DatabaseOptions(**kwargs)


@pytest.mark.parametrize('when', [
    datetime.datetime(1, 1, 1),
    datetime.datetime(1500, 1, 1, 12, 30),
    datetime.datetime(9999, 12, 31, 23, 59, 59),
])
def test_numpy_loader_full_timestamp_range(when):
    """Test datetimes outside the nanosecond range still load"""
    df = pandas_numpy_data_loader([(when,)], [ResultColumn('at', CanonicalType.DATETIME)])
    assert df['at'].dtype == 'datetime64[us]'
    assert df['at'][0].to_pydatetime() == when


def test_numpy_loader_timezone_aware_datetimes():
    when = datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
    df = pandas_numpy_data_loader([(when,), (None,)], [ResultColumn('at', CanonicalType.DATETIME)])
    assert df['at'][0] == when
    assert df['at'].isna()[1]


def test_pyarrow_loader_timestamps():
    columns = [ResultColumn('at', CanonicalType.DATETIME)]
    df = pandas_pyarrow_data_loader([(datetime.datetime(1, 1, 1),)], columns)
    assert df['at'].dtype == pd.ArrowDtype(pa.timestamp('us'))
    aware = datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
    df = pandas_pyarrow_data_loader([(aware,)], columns)
    assert df['at'].dtype == pd.ArrowDtype(pa.timestamp('us', tz='UTC'))
    assert df['at'][0] == aware
