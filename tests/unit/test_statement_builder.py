"""
Unit tests for DDL/DML statement generation.
"""
import datetime

import numpy as np
import pytest
from fbadapter.schema import TableSchema
from fbadapter.sql_generation import as_sql_string, create_insert_sql
from fbadapter.sql_generation import create_table_as_select_sql, create_table_sql
from fbadapter.sql_generation import drop_table_sql, get_db_data_type_name
from fbadapter.sql_generation import make_placeholders, rename_table_sql


def test_insert_sql():
    assert create_insert_sql('T', ['a', 'b']) == 'INSERT INTO T("a","b") VALUES (@1,@2)'


def test_insert_sql_quotes_columns_verbatim():
    assert create_insert_sql('T', ['my col']) == 'INSERT INTO T("my col") VALUES (@1)'


def test_make_placeholders():
    assert make_placeholders(3) == '@1,@2,@3'
    assert make_placeholders(0) == ''


def test_create_table_sql():
    """Test CREATE TABLE from parallel lists; a missing type is INTEGER"""
    sql = create_table_sql('T', ['a', 'b'], [None, 'VARCHAR(50)'])
    assert sql == 'CREATE TABLE T ("a" INTEGER,"b" VARCHAR(50))'


def test_create_table_sql_length_mismatch():
    with pytest.raises(ValueError):
        create_table_sql('T', ['a', 'b'], ['INTEGER'])


def test_table_rebuild_statements():
    assert rename_table_sql('T', 'T_old') == 'ALTER TABLE "T" RENAME TO "T_old"'
    assert create_table_as_select_sql('T', 'T_old', ['a', 'c']) == \
        'CREATE TABLE "T" AS SELECT "a","c" FROM "T_old"'
    assert drop_table_sql('T_old') == 'DROP TABLE "T_old"'


@pytest.mark.parametrize(('value', 'expected'), [
    (None, 'INTEGER'),
    (datetime.datetime(2024, 1, 1), 'TIMESTAMP'),
    (5, 'INTEGER'),
    (np.int32(5), 'INTEGER'),
    (np.int64(5), 'INTEGER'),
    (True, 'INTEGER'),
    (2**31, 'VARCHAR(50)'),
    (np.int64(2**40), 'VARCHAR(50)'),
    (np.float32(1.5), 'FLOAT'),
    (1.5, 'DOUBLE PRECISION'),
    (np.float64(1.5), 'DOUBLE PRECISION'),
    ('text', 'VARCHAR(50)'),
    (b'\x00', 'VARCHAR(50)'),
])
def test_db_data_type_name(value, expected):
    """Test in-memory values map to the DDL type that stores them"""
    assert get_db_data_type_name(value) == expected


def test_as_sql_string():
    """Test datetime literals use unpadded day, month and time fields"""
    value = datetime.datetime(2024, 3, 5, 7, 8, 9)
    assert as_sql_string(value) == "'5.3.2024, 7:8:9.000'"
    assert as_sql_string(datetime.datetime(2024, 12, 25, 23, 59, 0)) == "'25.12.2024, 23:59:0.000'"


def test_table_schema_from_lists():
    schema = TableSchema.from_lists('T', ['a', 'b'], [None, 'VARCHAR(50)'])
    assert schema.columns == [('a', None), ('b', 'VARCHAR(50)')]
    assert schema.column_names == ['a', 'b']
    assert schema.column_types == [None, 'VARCHAR(50)']
    assert schema.create_sql() == 'CREATE TABLE T ("a" INTEGER,"b" VARCHAR(50))'


def test_table_schema_length_mismatch():
    with pytest.raises(ValueError):
        TableSchema.from_lists('T', ['a'], ['INTEGER', 'INTEGER'])
