"""
Integration tests against a real Firebird database.

Skipped unless FIREBIRD_TEST_DATABASE is set (see tests/fixtures/firebird.py).
"""
import datetime

import pytest

pytestmark = pytest.mark.firebird


def test_create_insert_query(firebird_db):
    """Test the full write and read cycle with Firebird types"""
    when = datetime.datetime(2024, 3, 5, 17, 8, 9)
    firebird_db.create_table('ADAPTER_T', ['id', 'name', 'score', 'seen'],
                             ['INTEGER', 'VARCHAR(50)', 'DOUBLE PRECISION', 'TIMESTAMP'])
    assert firebird_db.table_exists('ADAPTER_T')
    assert firebird_db.get_column_names('ADAPTER_T') == ['id', 'name', 'score', 'seen']
    assert firebird_db.field_exists('ADAPTER_T', 'name')

    count = firebird_db.insert_rows('ADAPTER_T', ['id', 'name', 'score', 'seen'], [
        (1, 'Alice', 10.5, when),
        (2, 'Bob', 20.0, when),
        ])
    assert count == 2

    df = firebird_db.execute_query('select "id", "name", "score", "seen" from ADAPTER_T order by "id"')
    assert df['id'].tolist() == [1, 2]
    assert df['name'].tolist() == ['Alice', 'Bob']
    assert df['seen'][0] == when
    assert firebird_db.execute_query_return_int('select count(*) from ADAPTER_T') == 2


def test_drop_columns(firebird_db):
    firebird_db.create_table('ADAPTER_D', ['a', 'b', 'c'], ['INTEGER', 'INTEGER', 'INTEGER'])
    firebird_db.insert_rows('ADAPTER_D', ['a', 'b', 'c'], [(1, 2, 3)])
    firebird_db.drop_columns('ADAPTER_D', ['b'])
    assert firebird_db.get_column_names('ADAPTER_D') == ['a', 'c']
    assert firebird_db.execute_query_return_int('select "c" from ADAPTER_D') == 3
