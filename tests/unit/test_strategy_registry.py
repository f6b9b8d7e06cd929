"""
Unit tests for the dialect strategy registry.
"""
import pytest
from fbadapter.strategy import DatabaseStrategy, FirebirdStrategy, SQLiteStrategy
from fbadapter.strategy import get_available_dialects
from fbadapter.strategy import get_strategy, get_strategy_class, is_supported_dialect


def test_registered_dialects():
    assert set(get_available_dialects()) >= {'firebird', 'sqlite'}
    assert is_supported_dialect('firebird')
    assert not is_supported_dialect('postgresql')


def test_strategy_instances_are_cached():
    assert get_strategy('firebird') is get_strategy('firebird')
    assert isinstance(get_strategy('sqlite'), SQLiteStrategy)


def test_strategy_class_lookup():
    assert get_strategy_class('firebird') is FirebirdStrategy
    assert issubclass(get_strategy_class('sqlite'), DatabaseStrategy)


def test_unknown_dialect():
    with pytest.raises(ValueError, match='Unsupported dialect'):
        get_strategy('mysql')


def test_sqlite_keeps_default_drop_plan():
    """Test engines that can rename tables rebuild instead of altering"""
    strategy = get_strategy('sqlite')
    assert strategy.drop_columns_statements('T', ['b'], ['a', 'c']) == [
        'ALTER TABLE "T" RENAME TO "T_old"',
        'CREATE TABLE "T" AS SELECT "a","c" FROM "T_old"',
        'DROP TABLE "T_old"',
        ]
