"""
Schema-and-data adapter for Firebird (and SQLite) databases.

Open a database, create tables, insert rows and run queries whose results come
back with one canonical type per column:

    import fbadapter

    with fbadapter.open_database('/data/run.fdb') as db:
        db.create_table('T', ['a', 'b'], ['INTEGER', 'VARCHAR(50)'])
        db.insert_rows('T', ['a', 'b'], [(1, 'x'), (2, 'y')])
        df = db.execute_query('select * from T')
"""
__version__ = '0.1.0'

from fbadapter.binder import NO_VALUE, BindType, BoundParameter, bind_parameters
from fbadapter.connection import Database, dispose_all_engines, open_database
from fbadapter.exceptions import BatchInsertError, ConnectionFailure
from fbadapter.exceptions import DatabaseError, DataIntegrityError, QueryError
from fbadapter.exceptions import ReadOnlyError, SchemaEvolutionError
from fbadapter.exceptions import TypeConversionError
from fbadapter.options import DatabaseOptions, iterdict_data_loader
from fbadapter.options import pandas_numpy_data_loader
from fbadapter.options import pandas_pyarrow_data_loader
from fbadapter.schema import TableSchema
from fbadapter.transaction import Transaction as transaction
from fbadapter.types import CanonicalType, ColumnAccumulator, ResultColumn

__all__ = [
    'Database',
    'DatabaseOptions',
    'open_database',
    'dispose_all_engines',
    'transaction',
    'NO_VALUE',
    'BindType',
    'BoundParameter',
    'bind_parameters',
    'CanonicalType',
    'ColumnAccumulator',
    'ResultColumn',
    'TableSchema',
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'DatabaseError',
    'ConnectionFailure',
    'QueryError',
    'DataIntegrityError',
    'TypeConversionError',
    'BatchInsertError',
    'SchemaEvolutionError',
    'ReadOnlyError',
]
